from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..auth import get_current_customer_id
from ..database import get_db
from ..schemas.address_schema import Address, AddressCreate, AddressUpdate
from ..services.address_service import AddressService

router = APIRouter(prefix="/address", tags=["address"])


def get_address_service(db: Session = Depends(get_db)) -> AddressService:
    return AddressService(db)


def serialize(address: Address) -> dict:
    return address.model_dump(mode="json", by_alias=True)


@router.get("")
def list_addresses(
    customer_id: int = Depends(get_current_customer_id),
    service: AddressService = Depends(get_address_service),
):
    addresses = service.list_addresses(customer_id)
    return {"success": True, "addresses": [serialize(address) for address in addresses]}


@router.post("")
def add_address(
    address_in: AddressCreate,
    customer_id: int = Depends(get_current_customer_id),
    service: AddressService = Depends(get_address_service),
):
    address = service.add_address(customer_id, address_in)
    return {"success": True, "message": "Address added successfully", "address": serialize(address)}


@router.put("/{address_id}")
def update_address(
    address_id: str,
    address_in: AddressUpdate,
    customer_id: int = Depends(get_current_customer_id),
    service: AddressService = Depends(get_address_service),
):
    address = service.update_address(customer_id, address_id, address_in)
    return {"success": True, "message": "Address updated successfully", "address": serialize(address)}


@router.delete("/{address_id}")
def delete_address(
    address_id: str,
    customer_id: int = Depends(get_current_customer_id),
    service: AddressService = Depends(get_address_service),
):
    service.delete_address(customer_id, address_id)
    return {"success": True, "message": "Address deleted successfully"}


@router.put("/{address_id}/default")
def set_default_address(
    address_id: str,
    customer_id: int = Depends(get_current_customer_id),
    service: AddressService = Depends(get_address_service),
):
    address = service.set_default_address(customer_id, address_id)
    return {"success": True, "message": "Default address updated", "address": serialize(address)}
