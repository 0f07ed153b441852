from sqlalchemy import Column, Integer, String, Boolean, DateTime, Float, JSON
from datetime import datetime

from ..database import Base


class Customer(Base):
    __tablename__ = "customers"

    id = Column(Integer, primary_key=True, index=True)
    phone = Column(String(20), unique=True, index=True, nullable=False)
    name = Column(String(255), nullable=True)
    is_activated = Column(Boolean, default=False)

    # Ubicación en vivo (para el seguimiento de pedidos)
    live_location_latitude = Column(Float, nullable=True)
    live_location_longitude = Column(Float, nullable=True)

    # Libreta de direcciones: lista ordenada de documentos, se reemplaza entera.
    # address_version se incrementa en cada commit (control optimista).
    addresses = Column(JSON, nullable=False, default=list)
    address_version = Column(Integer, nullable=False, default=0)

    created_at = Column(DateTime, default=datetime.utcnow)
