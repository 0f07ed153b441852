import logging
from fastapi import APIRouter, Depends
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..auth import get_current_customer_id
from ..database import get_db
from ..errors import NotFound, StoreError
from ..models.customer import Customer
from ..schemas.address_schema import Location
from ..schemas.customer_schema import CustomerLogin, CustomerOut, CustomerUpdate

logger = logging.getLogger(__name__)
router = APIRouter(tags=["customers"])


def customer_out(customer: Customer) -> dict:
    live_location = None
    if customer.live_location_latitude is not None and customer.live_location_longitude is not None:
        live_location = Location(
            latitude=customer.live_location_latitude,
            longitude=customer.live_location_longitude,
        )
    out = CustomerOut(
        id=customer.id,
        phone=customer.phone,
        name=customer.name,
        is_activated=bool(customer.is_activated),
        live_location=live_location,
    )
    return out.model_dump(mode="json", by_alias=True)


def find_customer_by_phone(db: Session, phone: str):
    return db.query(Customer).filter(Customer.phone == phone).first()


def get_or_create_customer(db: Session, phone: str, name: str = None) -> Customer:
    """
    Busca un cliente por teléfono. Si no existe, lo crea ya activado.
    """
    customer = find_customer_by_phone(db, phone)
    if customer:
        return customer

    logger.info(f"Creando nuevo cliente para teléfono: {phone}")
    customer = Customer(phone=phone, name=name, is_activated=True, addresses=[], address_version=0)
    db.add(customer)
    try:
        db.commit()
    except IntegrityError:
        # Otro login con el mismo teléfono ganó la carrera
        db.rollback()
        customer = find_customer_by_phone(db, phone)
        if customer is None:
            raise StoreError("Failed to create customer")
        logger.info(f"Cliente {customer.id} creado por un login concurrente, se reutiliza")
        return customer
    db.refresh(customer)
    logger.info(f"Cliente creado con ID: {customer.id}")
    return customer


@router.post("/customer/login")
def login_customer(payload: CustomerLogin, db: Session = Depends(get_db)):
    customer = get_or_create_customer(db, payload.phone.strip(), payload.name)
    return {"success": True, "message": "Login Successful", "customer": customer_out(customer)}


def get_customer_or_404(db: Session, customer_id: int) -> Customer:
    customer = db.query(Customer).filter(Customer.id == customer_id).first()
    if not customer:
        raise NotFound("User not found")
    return customer


@router.get("/user")
def fetch_user(customer_id: int = Depends(get_current_customer_id), db: Session = Depends(get_db)):
    customer = get_customer_or_404(db, customer_id)
    return {"success": True, "message": "User fetched successfully", "user": customer_out(customer)}


@router.patch("/user")
def update_user(
    payload: CustomerUpdate,
    customer_id: int = Depends(get_current_customer_id),
    db: Session = Depends(get_db),
):
    """
    Actualiza nombre y/o ubicación en vivo del cliente.
    Solo se tocan los campos enviados.
    """
    customer = get_customer_or_404(db, customer_id)

    if "name" in payload.model_fields_set:
        customer.name = payload.name
    if "live_location" in payload.model_fields_set:
        location = payload.live_location
        customer.live_location_latitude = location.latitude if location else None
        customer.live_location_longitude = location.longitude if location else None

    db.commit()
    db.refresh(customer)
    logger.info(f"👤 Cliente {customer_id} actualizado: {', '.join(sorted(payload.model_fields_set)) or '(sin cambios)'}")
    return {"success": True, "message": "User updated successfully", "user": customer_out(customer)}
