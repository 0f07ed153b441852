"""
Operaciones sobre la libreta de direcciones de un cliente.

Regla: si el cliente tiene direcciones, exactamente una es la dirección por
defecto; si no tiene ninguna, no hay default. Cada operación calcula la lista
completa resultante y la confirma en un solo commit del AddressStore.

Concurrencia:
- dentro del proceso, un lock por cliente serializa el read-modify-write;
- entre procesos, el store detecta cambios de versión (ConflictError) y
  reintentamos con una lectura nueva hasta ``address_commit_retries`` veces.
"""
import logging
import threading
import weakref
from typing import Callable, List, Optional, TypeVar
from uuid import uuid4

from sqlalchemy.orm import Session

from ..config import get_settings
from ..errors import ConflictError, NotFound, StoreError, ValidationError
from ..schemas.address_schema import Address, AddressCreate, AddressLabel, AddressUpdate
from .address_store import AddressStore

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Campos que no aceptan null: un null se interpreta como "no enviado"
NON_NULLABLE_FIELDS = ("label", "full_address", "is_default")

_registry_guard = threading.Lock()
_customer_locks: "weakref.WeakValueDictionary[int, threading.Lock]" = weakref.WeakValueDictionary()


def customer_lock(customer_id: int) -> threading.Lock:
    """Lock del cliente; se libera de memoria cuando nadie lo está usando."""
    with _registry_guard:
        lock = _customer_locks.get(customer_id)
        if lock is None:
            lock = threading.Lock()
            _customer_locks[customer_id] = lock
        return lock


def default_count(addresses: List[Address]) -> int:
    return sum(1 for address in addresses if address.is_default)


def invariant_holds(addresses: List[Address]) -> bool:
    return default_count(addresses) == (1 if addresses else 0)


def _find(addresses: List[Address], address_id: str) -> Address:
    for address in addresses:
        if address.id == address_id:
            return address
    raise NotFound("Address not found")


def _make_default(addresses: List[Address], target: Address) -> None:
    for address in addresses:
        address.is_default = address is target


def _rederive_default(addresses: List[Address]) -> None:
    # Sin default: la primera dirección en orden pasa a serlo
    if addresses and default_count(addresses) == 0:
        addresses[0].is_default = True


class AddressService:
    def __init__(self, db: Session, store: Optional[AddressStore] = None, retries: Optional[int] = None):
        self.store = store or AddressStore(db)
        self.retries = retries or get_settings().address_commit_retries

    def _commit_change(self, customer_id: int, apply: Callable[[List[Address]], T]) -> T:
        with customer_lock(customer_id):
            for attempt in range(1, self.retries + 1):
                book = self.store.load(customer_id)
                result = apply(book.addresses)

                if not invariant_holds(book.addresses):
                    logger.error(
                        f"❌ Libreta inválida para cliente {customer_id}: "
                        f"{default_count(book.addresses)} defaults en {len(book.addresses)} direcciones"
                    )
                    raise StoreError("Failed to save addresses", "default address invariant violated")

                try:
                    self.store.commit(book)
                    return result
                except ConflictError as e:
                    logger.warning(
                        f"⚠️ Conflicto guardando direcciones del cliente {customer_id} "
                        f"(intento {attempt}/{self.retries}): {e.detail}"
                    )

        raise StoreError(
            "Failed to save addresses",
            f"address book kept changing concurrently after {self.retries} attempts",
        )

    def list_addresses(self, customer_id: int) -> List[Address]:
        return self.store.load(customer_id).addresses

    def add_address(self, customer_id: int, fields: AddressCreate) -> Address:
        full_address = (fields.full_address or "").strip()
        if not full_address:
            raise ValidationError("Full address is required")

        def apply(addresses: List[Address]) -> Address:
            # La primera dirección siempre es la default
            make_default = bool(fields.is_default) or not addresses
            if make_default:
                for address in addresses:
                    address.is_default = False

            new_address = Address(
                id=uuid4().hex,
                label=fields.label or AddressLabel.HOME,
                full_address=full_address,
                landmark=fields.landmark or "",
                floor=fields.floor or "",
                location=fields.location,
                is_default=make_default,
            )
            addresses.append(new_address)
            return new_address

        address = self._commit_change(customer_id, apply)
        logger.info(f"📍 Dirección {address.id} agregada al cliente {customer_id} (default={address.is_default})")
        return address

    def update_address(self, customer_id: int, address_id: str, fields: AddressUpdate) -> Address:
        provided = [
            name for name in fields.model_fields_set
            if not (name in NON_NULLABLE_FIELDS and getattr(fields, name) is None)
        ]
        if "full_address" in provided and not fields.full_address.strip():
            raise ValidationError("Full address cannot be empty")

        def apply(addresses: List[Address]) -> Address:
            target = _find(addresses, address_id)
            for name in provided:
                value = getattr(fields, name)
                if name == "full_address":
                    value = value.strip()
                setattr(target, name, value)

            if target.is_default:
                _make_default(addresses, target)
            _rederive_default(addresses)
            return target

        address = self._commit_change(customer_id, apply)
        logger.info(f"✏️ Dirección {address_id} actualizada para cliente {customer_id}: {', '.join(provided) or '(sin cambios)'}")
        return address

    def delete_address(self, customer_id: int, address_id: str) -> None:
        def apply(addresses: List[Address]) -> None:
            target = _find(addresses, address_id)
            addresses.remove(target)
            _rederive_default(addresses)

        self._commit_change(customer_id, apply)
        logger.info(f"🗑️ Dirección {address_id} eliminada del cliente {customer_id}")

    def set_default_address(self, customer_id: int, address_id: str) -> Address:
        def apply(addresses: List[Address]) -> Address:
            target = _find(addresses, address_id)
            _make_default(addresses, target)
            return target

        address = self._commit_change(customer_id, apply)
        logger.info(f"⭐ Dirección {address_id} es ahora la default del cliente {customer_id}")
        return address
