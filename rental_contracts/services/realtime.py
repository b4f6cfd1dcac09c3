"""Real-time notifications from the marketplace Socket.IO server.

A ``RealtimeClient`` is created once and handed to whatever listens for
events (contract feeds, chat views). Nothing reaches for a global socket.
"""

import logging
from collections import defaultdict
from typing import Awaitable, Callable, Optional, Union

import socketio

from rental_contracts.utils.config import Settings, get_settings

logger = logging.getLogger(__name__)

Handler = Callable[[dict], Union[None, Awaitable[None]]]

# Events after which a contract list must be refetched
CONTRACT_REFRESH_EVENTS = (
    "contractCreated",
    "contractUpdated",
    "contract_updated",
    "contractUpdate",
    "contractSigned",
    "contractApproved",
    "contractRejected",
    "contractStatusUpdated",
)
CONTRACT_DELETED_EVENT = "contractDeleted"
SIGNATURE_REMINDER_EVENT = "signatureReminder"
MESSAGE_EVENTS = ("receive_message", "messages_viewed")


class RealtimeClient:
    """Thin wrapper over ``socketio.AsyncClient`` with add/remove of handlers.

    Socket.IO itself keeps one handler per event; this class fans each event
    out to every registered handler so several views can listen at once.
    """

    def __init__(self, settings: Optional[Settings] = None, sio: Optional[socketio.AsyncClient] = None):
        self.settings = settings or get_settings()
        self.sio = sio or socketio.AsyncClient(reconnection=True, reconnection_attempts=5, reconnection_delay=1)
        self._handlers: dict[str, list[Handler]] = defaultdict(list)
        self._bound: set[str] = set()

        self.sio.on("connect", self._on_connect)
        self.sio.on("disconnect", self._on_disconnect)

    async def _on_connect(self):
        logger.info(f"Socket connected: {self.sio.sid}")

    async def _on_disconnect(self, *args):
        logger.info("Socket disconnected")

    @property
    def connected(self) -> bool:
        return self.sio.connected

    async def connect(self, token: Optional[str] = None) -> None:
        token = token if token is not None else self.settings.api_token
        await self.sio.connect(
            self.settings.socket_url,
            auth={"token": token} if token else None,
            transports=["websocket", "polling"],
        )

    async def disconnect(self) -> None:
        if self.sio.connected:
            await self.sio.disconnect()

    async def register(self, user_id: str) -> None:
        """Join the per-user room the backend emits contract events to."""
        if user_id:
            await self.sio.emit("register", user_id)

    async def join_chat(self, property_id: str, user_id1: str, user_id2: str) -> None:
        if property_id and user_id1 and user_id2:
            await self.sio.emit("join_chat", {"propertyId": property_id, "userId1": user_id1, "userId2": user_id2})

    def on(self, event: str, handler: Handler) -> None:
        if event not in self._bound:
            self.sio.on(event, self._dispatcher(event))
            self._bound.add(event)
        self._handlers[event].append(handler)

    def off(self, event: str, handler: Handler) -> None:
        handlers = self._handlers.get(event, [])
        if handler in handlers:
            handlers.remove(handler)

    def _dispatcher(self, event: str):
        async def dispatch(data=None):
            await self.dispatch(event, data or {})
        return dispatch

    async def dispatch(self, event: str, data: dict) -> None:
        """Deliver one event to every handler; a failing handler is logged and skipped."""
        for handler in list(self._handlers.get(event, [])):
            try:
                result = handler(data)
                if result is not None:
                    await result
            except Exception as e:
                logger.error(f"Handler for '{event}' failed: {e}")
