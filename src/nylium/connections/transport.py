"""Message transports for the client.

The client talks to a ``Transport``: a connected, bidirectional, named-message
channel. ``SocketIOTransport`` is the production implementation; tests drive
the state machine through an in-memory fake with the same surface.

A transport delivers every inbound message to a single dispatch callback as
``(name, payload)``. Socket.IO's reserved events are normalized to the names
``connect_error`` (payload: message string) and ``disconnect`` (payload:
reason string).
"""

import logging
from typing import Any, Callable, Optional, Protocol

import socketio  # type: ignore[import-untyped]

from nylium.common.exceptions import ConnectionFailedError, NotConnectedError
from nylium.config.enumerations import ServerMessage

logger = logging.getLogger(__name__)

Dispatch = Callable[[str, Any], None]

DEFAULT_DISCONNECT_REASON = "transport close"


class Transport(Protocol):
    def bind(self, dispatch: Dispatch) -> None: ...

    async def open(self, url: str, timeout: float) -> None: ...

    async def emit(self, event: str, data: Any = None) -> None: ...

    async def call(self, event: str, data: Any = None, timeout: float = 60.0) -> Any: ...

    async def close(self) -> None: ...


TransportFactory = Callable[[], Transport]


class SocketIOTransport:
    """Socket.IO client restricted to the ``websocket`` transport.

    Built-in Socket.IO reconnection is disabled; the client owns the
    reconnection policy. One instance serves exactly one connection attempt.
    """

    TRANSPORTS = ["websocket"]

    def __init__(self) -> None:
        self.sio = socketio.AsyncClient(reconnection=False, logger=False)
        self.dispatch: Optional[Dispatch] = None

        self.sio.on("connect", self.on_connect)
        self.sio.on("connect_error", self.on_connect_error)
        self.sio.on("disconnect", self.on_disconnect)
        self.sio.on("*", self.on_message)

    def bind(self, dispatch: Dispatch) -> None:
        self.dispatch = dispatch

    async def open(self, url: str, timeout: float) -> None:
        try:
            await self.sio.connect(url, transports=self.TRANSPORTS, wait_timeout=timeout)
        except socketio.exceptions.ConnectionError as e:
            raise ConnectionFailedError(str(e) or "Connection refused", e) from e

    async def emit(self, event: str, data: Any = None) -> None:
        try:
            await self.sio.emit(event, data)
        except socketio.exceptions.BadNamespaceError as e:
            raise NotConnectedError(f"Transport closed, cannot send {event}") from e

    async def call(self, event: str, data: Any = None, timeout: float = 60.0) -> Any:
        try:
            return await self.sio.call(event, data, timeout=timeout)
        except socketio.exceptions.TimeoutError as e:
            raise TimeoutError(f"No response to {event} after {timeout:g}s") from e
        except socketio.exceptions.BadNamespaceError as e:
            raise NotConnectedError(f"Transport closed, cannot send {event}") from e

    async def close(self) -> None:
        await self.sio.disconnect()

    # --- Socket.IO callbacks ------------------------------------------------

    def deliver(self, name: str, payload: Any) -> None:
        if self.dispatch is None:
            logger.warning("Dropping %s: transport has no dispatch bound", name)
            return
        self.dispatch(name, payload)

    async def on_connect(self) -> None:
        logger.debug("Socket.IO transport connected (sid=%s)", self.sio.sid)

    async def on_connect_error(self, data: Any = None) -> None:
        message = data.get("message") if isinstance(data, dict) else data
        self.deliver(ServerMessage.CONNECT_ERROR.value, str(message or "connect_error"))

    async def on_disconnect(self, reason: Any = None) -> None:
        self.deliver(ServerMessage.DISCONNECT.value, str(reason or DEFAULT_DISCONNECT_REASON))

    async def on_message(self, event: str, *args: Any) -> None:
        if len(args) == 1:
            payload = args[0]
        else:
            payload = list(args) or None
        self.deliver(event, payload)
