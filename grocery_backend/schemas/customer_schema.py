from typing import Optional

from pydantic import Field

from .address_schema import CamelModel, Location


class CustomerLogin(CamelModel):
    phone: str = Field(..., min_length=5, max_length=20)
    name: Optional[str] = None


class CustomerOut(CamelModel):
    id: int
    phone: str
    name: Optional[str] = None
    role: str = "Customer"
    is_activated: bool = False
    live_location: Optional[Location] = None


class CustomerUpdate(CamelModel):
    """Update parcial del cliente; ``liveLocation: null`` borra la ubicación."""

    name: Optional[str] = None
    live_location: Optional[Location] = None
