"""
Salas en memoria por pedido (orderId) para enviar actualizaciones en vivo.

- join: agrega la conexión a la sala (idempotente).
- leave: saca la conexión de todas sus salas; una sala vacía se descarta.
- publish: entrega el evento a los miembros actuales, sin buffer ni replay.

El estado vive en el proceso y se pierde al reiniciar; los clientes vuelven a
hacer joinRoom al reconectar.
"""
import asyncio
import logging
import threading
from typing import Any, Dict, Optional, Protocol, Set

from ..config import get_settings

logger = logging.getLogger(__name__)


class Participant(Protocol):
    async def send_json(self, data: Any) -> None: ...


class OrderRoomBroadcaster:
    def __init__(self, send_timeout: Optional[float] = None):
        self._rooms: Dict[str, Set[Participant]] = {}
        self._memberships: Dict[Participant, Set[str]] = {}
        self._lock = threading.Lock()
        self.send_timeout = send_timeout

    def join(self, order_id: str, participant: Participant) -> None:
        with self._lock:
            self._rooms.setdefault(order_id, set()).add(participant)
            self._memberships.setdefault(participant, set()).add(order_id)
        logger.info(f"🔴 Participante se unió a la sala {order_id}")

    def leave(self, participant: Participant) -> Set[str]:
        """Saca al participante de todas sus salas y devuelve cuáles eran."""
        with self._lock:
            order_ids = self._memberships.pop(participant, set())
            for order_id in order_ids:
                members = self._rooms.get(order_id)
                if members is None:
                    continue
                members.discard(participant)
                if not members:
                    del self._rooms[order_id]
        if order_ids:
            logger.info(f"👋 Participante salió de las salas: {', '.join(sorted(order_ids))}")
        return order_ids

    def members(self, order_id: str) -> Set[Participant]:
        with self._lock:
            return set(self._rooms.get(order_id, ()))

    def rooms_of(self, participant: Participant) -> Set[str]:
        with self._lock:
            return set(self._memberships.get(participant, ()))

    def has_room(self, order_id: str) -> bool:
        with self._lock:
            return order_id in self._rooms

    async def publish(self, order_id: str, event: str, data: Any = None) -> int:
        """
        Envía ``{"event": event, "data": data}`` a los miembros actuales de la sala.

        Cada envío es independiente: un miembro lento o caído no frena al
        resto; se lo saca de todas sus salas. Retorna cuántos lo recibieron.
        """
        members = self.members(order_id)
        if not members:
            logger.debug(f"Sala {order_id} sin miembros, evento {event} descartado")
            return 0

        message = {"event": event, "data": data}
        delivered = await asyncio.gather(*(self._deliver(member, order_id, message) for member in members))
        return sum(1 for ok in delivered if ok)

    async def _deliver(self, participant: Participant, order_id: str, message: dict) -> bool:
        timeout = self.send_timeout if self.send_timeout is not None else get_settings().room_send_timeout
        try:
            await asyncio.wait_for(participant.send_json(message), timeout=timeout)
            return True
        except Exception as e:
            logger.warning(f"⚠️ No se pudo entregar {message['event']} en sala {order_id}: {e!r}; se desconecta al participante")
            self.leave(participant)
            return False


_broadcaster_instance = None


def get_broadcaster() -> OrderRoomBroadcaster:
    """Instancia única por proceso."""
    global _broadcaster_instance
    if _broadcaster_instance is None:
        _broadcaster_instance = OrderRoomBroadcaster()
    return _broadcaster_instance
