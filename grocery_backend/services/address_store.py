"""
Persistencia de la libreta de direcciones de cada cliente.

La libreta completa se guarda como un documento JSON en la fila del cliente.
``load`` devuelve una foto (AddressBook) con la versión leída y ``commit``
reemplaza la lista entera solo si la versión no cambió (compare-and-swap).
El store no conoce la regla de la dirección por defecto: escribe lo que el
servicio le entrega.
"""
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..errors import ConflictError, NotFound, StoreError
from ..models.customer import Customer
from ..schemas.address_schema import Address

logger = logging.getLogger(__name__)


@dataclass
class AddressBook:
    customer_id: int
    version: int
    addresses: List[Address]
    snapshot: Dict[str, dict] = field(default_factory=dict, repr=False)


class AddressStore:
    def __init__(self, db: Session):
        self.db = db

    def load(self, customer_id: int) -> AddressBook:
        try:
            row = (
                self.db.query(Customer.addresses, Customer.address_version)
                .filter(Customer.id == customer_id)
                .first()
            )
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"❌ Error leyendo direcciones del cliente {customer_id}: {e}", exc_info=True)
            raise StoreError("Failed to fetch addresses", str(e)) from e

        if row is None:
            raise NotFound("Customer not found")

        addresses = [Address.model_validate(doc) for doc in (row.addresses or [])]
        snapshot = {address.id: address.model_dump(mode="json") for address in addresses}
        return AddressBook(
            customer_id=customer_id,
            version=row.address_version or 0,
            addresses=addresses,
            snapshot=snapshot,
        )

    def commit(self, book: AddressBook) -> None:
        """
        Reemplaza la lista de direcciones del cliente en un único UPDATE.

        Lanza ConflictError si otro escritor confirmó una versión nueva desde
        el ``load`` que produjo ``book``.
        """
        now = datetime.utcnow()
        for address in book.addresses:
            before = book.snapshot.get(address.id)
            if before is not None and before == address.model_dump(mode="json"):
                continue
            if address.created_at is None:
                address.created_at = now
            address.updated_at = now

        documents = [address.model_dump(mode="json") for address in book.addresses]

        try:
            matched = (
                self.db.query(Customer)
                .filter(Customer.id == book.customer_id, Customer.address_version == book.version)
                .update(
                    {Customer.addresses: documents, Customer.address_version: book.version + 1},
                    synchronize_session=False,
                )
            )
            if matched == 0:
                self.db.rollback()
                raise ConflictError(
                    "Address book changed concurrently",
                    f"customer {book.customer_id} is no longer at version {book.version}",
                )
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"❌ Error guardando direcciones del cliente {book.customer_id}: {e}", exc_info=True)
            raise StoreError("Failed to save addresses", str(e)) from e

        book.version += 1
        book.snapshot = {address.id: doc for address, doc in zip(book.addresses, documents)}
