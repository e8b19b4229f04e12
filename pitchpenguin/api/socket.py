import logging
from typing import Any, Awaitable, Callable
import socketio

logger = logging.getLogger(__name__)

StateHandler = Callable[[dict[str, Any]], Awaitable[None]]


class RoomSocket:
    """
    Socket.IO channel for one room. The server emits `room:state` whenever
    the phase changes, which lets a page refresh without waiting for the
    next poll tick.
    """

    def __init__(self, base_url: str, code: str, player_name: str, client: socketio.AsyncClient | None = None):
        self.base_url = base_url
        self.code = code
        self.player_name = player_name
        self.sio = client or socketio.AsyncClient(reconnection=True)
        self._handlers: list[StateHandler] = []
        self.sio.on("room:state", self._on_state)
        self.sio.on("connect", self._on_connect)

    def on_state(self, handler: StateHandler) -> None:
        self._handlers.append(handler)

    async def connect(self) -> None:
        await self.sio.connect(self.base_url, transports=["websocket", "polling"])

    async def _on_connect(self) -> None:
        # Rejoin on every (re)connect so the server keeps us in the room
        await self.sio.emit("room:join", {"code": self.code, "playerName": self.player_name})

    async def _on_state(self, data: Any) -> None:
        if not isinstance(data, dict):
            logger.error(f"Ignoring malformed room:state payload: {data!r}")
            return
        for handler in list(self._handlers):
            await handler(data)

    async def close(self) -> None:
        if self.sio.connected:
            await self.sio.emit("room:leave", {"code": self.code, "playerName": self.player_name})
            await self.sio.disconnect()
