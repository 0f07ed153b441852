# Importar todos los modelos para que SQLAlchemy los registre
from .customer import Customer

__all__ = [
    "Customer",
]
