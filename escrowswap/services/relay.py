"""Room relay: forward chat messages and order notices between members of an order code."""

import logging
from typing import Any, Protocol

from escrowswap.services.orders import normalize_code

logger = logging.getLogger(__name__)

DEFAULT_DISPLAY_NAME = "User"
DISPLAY_NAME_MAX_LEN = 64

# Server-emitted events
EVENT_JOINED = "joined"
EVENT_SYSTEM = "system"
EVENT_MSG = "msg"
EVENT_ORDER_UPDATED = "order-updated"


class RelayConnection(Protocol):
    """Anything that can push a JSON frame to one client (e.g. starlette WebSocket)."""

    async def send_json(self, data: Any) -> None: ...


def frame(event: str, data: dict[str, Any]) -> dict[str, Any]:
    """Build the {"event", "data"} envelope used on the wire."""
    return {"event": event, "data": data}


class RoomRelay:
    """
    In-memory room membership for one process.

    Each connection may be in several rooms and carries a display name per room.
    Only touched from the event loop, so no locking.
    """

    def __init__(self, max_message_length: int = 2000) -> None:
        self.max_message_length = max_message_length
        # code -> {connection: display name}
        self._rooms: dict[str, dict[RelayConnection, str]] = {}
        # connection -> codes it joined
        self._memberships: dict[RelayConnection, set[str]] = {}

    def room_size(self, code: str) -> int:
        return len(self._rooms.get(normalize_code(code), {}))

    def rooms_of(self, conn: RelayConnection) -> set[str]:
        return set(self._memberships.get(conn, ()))

    def is_member(self, conn: RelayConnection, code: str) -> bool:
        return conn in self._rooms.get(normalize_code(code), {})

    async def _send(self, conn: RelayConnection, payload: dict[str, Any]) -> bool:
        try:
            await conn.send_json(payload)
            return True
        except Exception as e:
            logger.warning("Relay send failed, dropping connection: %s", e)
            self.leave_all(conn)
            return False

    async def _broadcast(
        self,
        code: str,
        payload: dict[str, Any],
        exclude: RelayConnection | None = None,
    ) -> int:
        """Send to every member of `code` except `exclude`. Returns the delivered count."""
        # Snapshot: a failed send mutates the room.
        targets = [c for c in self._rooms.get(code, {}) if c is not exclude]
        delivered = 0
        for conn in targets:
            if await self._send(conn, payload):
                delivered += 1
        return delivered

    async def system(self, conn: RelayConnection, message: str) -> None:
        """Send a system notice to a single connection."""
        await self._send(conn, frame(EVENT_SYSTEM, {"message": message}))

    async def join(self, conn: RelayConnection, code: str | None, name: str | None) -> str | None:
        """
        Add `conn` to room `code` under display name `name` and announce it.

        Returns the normalised code, or None when the code is empty.
        Re-joining a room only updates the display name.
        """
        code = normalize_code(code)
        if not code:
            await self.system(conn, "Order code is required.")
            return None
        display = (name or "").strip()[:DISPLAY_NAME_MAX_LEN] or DEFAULT_DISPLAY_NAME

        self._rooms.setdefault(code, {})[conn] = display
        self._memberships.setdefault(conn, set()).add(code)
        logger.info("Relay join: room=%s members=%s", code, len(self._rooms[code]))

        await self._send(conn, frame(EVENT_JOINED, {"code": code}))
        await self._broadcast(
            code,
            frame(EVENT_SYSTEM, {"message": f"{display} joined the room."}),
            exclude=conn,
        )
        return code

    async def send_message(self, conn: RelayConnection, code: str | None, text: str | None) -> int:
        """
        Forward `text` from `conn` to the other members of `code`.

        Returns how many members received it. Senders outside the room get a
        notice and nothing is forwarded.
        """
        code = normalize_code(code)
        text = (text or "").strip()
        if not code or not text:
            return 0
        room = self._rooms.get(code, {})
        sender = room.get(conn)
        if sender is None:
            await self.system(conn, f"Join room {code} before sending messages.")
            return 0
        if len(text) > self.max_message_length:
            await self.system(
                conn, f"Message too long (max {self.max_message_length} characters)."
            )
            return 0
        return await self._broadcast(
            code,
            frame(EVENT_MSG, {"code": code, "from": sender, "text": text}),
            exclude=conn,
        )

    async def publish_order_update(self, code: str | None, status: str) -> int:
        """Tell every member of `code` that the order's status changed."""
        code = normalize_code(code)
        if not code:
            return 0
        return await self._broadcast(
            code,
            frame(EVENT_ORDER_UPDATED, {"code": code, "status": status}),
        )

    def leave_all(self, conn: RelayConnection) -> None:
        """Forget `conn` everywhere. Peers are not notified."""
        for code in self._memberships.pop(conn, set()):
            room = self._rooms.get(code)
            if room is None:
                continue
            room.pop(conn, None)
            if not room:
                del self._rooms[code]
