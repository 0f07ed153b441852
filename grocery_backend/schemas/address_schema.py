from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel


class AddressLabel(str, Enum):
    HOME = "Home"
    WORK = "Work"
    HOTEL = "Hotel"
    OTHER = "Other"


class CamelModel(BaseModel):
    """Los clientes hablan camelCase (fullAddress, isDefault); internamente usamos snake_case."""

    class Config:
        alias_generator = to_camel
        populate_by_name = True
        from_attributes = True


class Location(CamelModel):
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)


class Address(CamelModel):
    id: str
    label: AddressLabel = AddressLabel.HOME
    full_address: str
    landmark: Optional[str] = ""
    floor: Optional[str] = ""
    location: Optional[Location] = None
    is_default: bool = False
    created_at: Optional[datetime] = None  # Lo asigna el store al escribir
    updated_at: Optional[datetime] = None


class AddressCreate(CamelModel):
    label: Optional[AddressLabel] = None
    full_address: Optional[str] = None  # Requerido, pero lo valida el servicio (400 con mensaje propio)
    landmark: Optional[str] = None
    floor: Optional[str] = None
    location: Optional[Location] = None
    is_default: Optional[bool] = False


class AddressUpdate(CamelModel):
    """Update parcial: solo los campos enviados pisan los existentes."""

    label: Optional[AddressLabel] = None
    full_address: Optional[str] = None
    landmark: Optional[str] = None
    floor: Optional[str] = None
    location: Optional[Location] = None
    is_default: Optional[bool] = None
