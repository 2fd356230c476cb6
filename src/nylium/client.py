"""HyperliquidClient: real-time market data over the Nylium data server.

Opens one Socket.IO connection, relays server pushes as logical events and
owns the connection lifecycle::

    client = HyperliquidClient(network="testnet")
    client.on("prices", lambda prices: print(len(prices), "prices"))

    async with client:
        await client.subscribe_prices()
        await asyncio.sleep(60)

State machine::

    disconnected -> connecting -> connected
    connecting --(failure)--> reconnecting | error
    connected --(transport drop)--> disconnected -> reconnecting -> connecting
    reconnecting --(attempts exhausted)--> error

Only an explicit ``connect()`` leaves ``error``. ``disconnect()`` is the one
cancellation primitive: it stops the reconnect loop and detaches the
transport in a single synchronous step, so nothing fires against a stale
connection afterwards.
"""

import asyncio
import functools
import logging
import time
from types import TracebackType
from typing import Any, Optional, TypeVar, Union

from pydantic import BaseModel, ValidationError

from nylium.common.exceptions import (
    AuthenticationError,
    AuthenticationInProgressError,
    AuthenticationTimeoutError,
    ConnectionFailedError,
    InvalidArgumentError,
    NotAuthenticatedError,
    NotConnectedError,
)
from nylium.config.enumerations import (
    ConnectionState,
    ErrorCode,
    LogicalEvent,
    Network,
    Request,
    ServerMessage,
)
from nylium.config.settings import ClientConfig
from nylium.connections.reconnection import ReconnectPolicy, ReconnectScheduler
from nylium.connections.transport import SocketIOTransport, Transport, TransportFactory
from nylium.messaging.models.messages import (
    AssetSubscriptionRequest,
    AuthenticateRequest,
    CandleSubscriptionRequest,
    PriceSubscriptionRequest,
    PricesRequest,
    RequestModel,
    UnsubscribeRequest,
)
from nylium.messaging.registry import EventRegistry, Handler
from nylium.messaging.routing import route_message

logger = logging.getLogger(__name__)

AUTH_TIMEOUT_SECONDS = 10.0

M = TypeVar("M", bound=BaseModel)


class HyperliquidClient:
    """Connection manager for the Nylium market data server.

    Every instance owns its own transport, counters and handler registry;
    instances never share state.
    """

    def __init__(
        self,
        config: Optional[ClientConfig] = None,
        *,
        transport_factory: Optional[TransportFactory] = None,
        scheduler: Optional[ReconnectScheduler] = None,
        **options: Any,
    ) -> None:
        if config is not None and options:
            raise InvalidArgumentError("pass either a ClientConfig or keyword options, not both")

        self.config = config or self.build(ClientConfig, **options)
        self.transport_factory: TransportFactory = transport_factory or SocketIOTransport
        self.policy = ReconnectPolicy(
            base_delay=self.config.reconnect_delay,
            max_attempts=self.config.max_reconnect_attempts,
        )
        self.scheduler = scheduler or ReconnectScheduler()
        self.events = EventRegistry()

        self.transport: Optional[Transport] = None
        self.connection_state = ConnectionState.DISCONNECTED
        self.reconnect_attempts = 0
        self.authenticated_wallet: Optional[str] = None

        self.pending_ack: Optional[asyncio.Future[Optional[str]]] = None
        self.pending_auth: Optional[tuple[str, asyncio.Future[str]]] = None
        self.teardown_tasks: set[asyncio.Task[None]] = set()
        # Detached outside a running loop; closed by the next close()
        self.unclosed_transports: list[Transport] = []

        # The debug flag surfaces this instance's connection trace at INFO
        self.trace_level = logging.INFO if self.config.debug else logging.DEBUG
        self.trace("Initialized for %s at %s", self.config.network.value, self.config.server_url)

    # --- Async context manager -------------------------------------------

    async def __aenter__(self) -> "HyperliquidClient":
        await self.connect()
        return self

    async def __aexit__(
        self,
        exc_type: Optional[type[BaseException]],
        exc: Optional[BaseException],
        tb: Optional[TracebackType],
    ) -> None:
        await self.close()

    # --- Accessors --------------------------------------------------------

    @property
    def state(self) -> ConnectionState:
        return self.connection_state

    def get_state(self) -> ConnectionState:
        return self.connection_state

    def is_connected(self) -> bool:
        return self.connection_state == ConnectionState.CONNECTED

    def get_network(self) -> Network:
        return self.config.network

    def get_authenticated_wallet(self) -> Optional[str]:
        return self.authenticated_wallet

    # --- Connection -------------------------------------------------------

    async def connect(self) -> None:
        """Connect and wait for the server's acknowledgment.

        No-op while connecting or connected. From ``reconnecting`` or
        ``error`` the pending reconnect loop is abandoned and the attempt
        counter starts over.

        Cancelling ``connect()`` (e.g. a caller-side ``wait_for`` timeout)
        abandons the attempt and leaves the client ``disconnected``.

        Raises:
            ConnectionFailedError: the transport failed before the server
                acknowledged the connection. With auto-reconnect enabled the
                reconnect loop is already running when this propagates.
        """
        if self.connection_state in (ConnectionState.CONNECTED, ConnectionState.CONNECTING):
            return

        self.scheduler.cancel()
        self.reconnect_attempts = 0

        try:
            await self.attempt_connection()
        except ConnectionFailedError as e:
            self.handle_connection_failure(e)
            raise
        except asyncio.CancelledError:
            # The attempt released its transport; a late ack may already
            # have marked the client connected
            if self.transport is None and self.connection_state in (
                ConnectionState.CONNECTING,
                ConnectionState.CONNECTED,
            ):
                self.set_state(ConnectionState.DISCONNECTED)
            raise

    def disconnect(self) -> None:
        """Drop the connection without reconnecting. Idempotent; never raises.

        Transport shutdown is scheduled on the running event loop. Called
        with no loop running, the detached transport is closed by the next
        ``close()`` instead.
        """
        self.scheduler.cancel()

        transport, self.transport = self.transport, None
        if transport is not None:
            self.schedule_teardown(transport)

        if self.pending_ack is not None and not self.pending_ack.done():
            self.pending_ack.set_exception(ConnectionFailedError("Connection closed by client"))

        self.fail_pending_auth(NotConnectedError("Disconnected while authenticating"))
        self.authenticated_wallet = None

        if self.connection_state != ConnectionState.DISCONNECTED:
            self.set_state(ConnectionState.DISCONNECTED)
            self.trace("Disconnected")

    async def close(self) -> None:
        """Disconnect and wait for the transport to finish shutting down."""
        self.disconnect()
        while self.unclosed_transports:
            self.schedule_teardown(self.unclosed_transports.pop())
        if self.teardown_tasks:
            await asyncio.gather(*self.teardown_tasks)

    async def attempt_connection(self) -> None:
        """Open a fresh transport and wait for the connection ack."""
        self.set_state(ConnectionState.CONNECTING)
        self.trace("Connecting to %s", self.config.server_url)

        transport = self.transport_factory()
        self.transport = transport
        ack: asyncio.Future[Optional[str]] = asyncio.get_running_loop().create_future()
        self.pending_ack = ack

        # Listeners are bound once per transport, i.e. once per attempt
        transport.bind(functools.partial(self.on_transport_message, transport))

        try:
            await transport.open(self.config.server_url, self.config.connect_timeout)
            await asyncio.wait_for(ack, timeout=self.config.connect_timeout)
        except (ConnectionFailedError, asyncio.CancelledError):
            self.release(transport)
            raise
        except asyncio.TimeoutError as e:
            self.release(transport)
            raise ConnectionFailedError(
                f"No connection acknowledgment within {self.config.connect_timeout:g}s"
            ) from e
        except Exception as e:
            self.release(transport)
            raise ConnectionFailedError(str(e) or type(e).__name__, e) from e
        finally:
            if self.pending_ack is ack:
                self.pending_ack = None
            if not ack.done():
                ack.cancel()
            elif not ack.cancelled():
                # Mark a late failure as retrieved
                ack.exception()

    def handle_connection_failure(self, error: ConnectionFailedError) -> None:
        if not self.report_connection_failure(error):
            return

        if self.config.auto_reconnect:
            self.start_reconnect()
        else:
            self.set_state(ConnectionState.ERROR)

    def report_connection_failure(self, error: ConnectionFailedError) -> bool:
        """Emit ``CONNECTION_ERROR`` for a failed attempt.

        Returns False when the attempt was abandoned, either before the
        failure (disconnect() while in flight) or by an ``error`` handler.
        """
        if self.connection_state != ConnectionState.CONNECTING:
            return False

        logger.warning("Connection error: %s", error.message)
        self.events.emit(
            LogicalEvent.ERROR,
            {"code": ErrorCode.CONNECTION_ERROR.value, "message": error.message},
        )
        return self.connection_state == ConnectionState.CONNECTING

    def start_reconnect(self) -> None:
        self.set_state(ConnectionState.RECONNECTING)
        self.scheduler.start(self.reconnect_loop)

    async def reconnect_loop(self) -> None:
        """Retry with geometric backoff until connected or out of attempts."""
        while True:
            self.reconnect_attempts += 1
            attempt = self.reconnect_attempts

            if self.policy.exhausted(attempt):
                logger.error(
                    "Max reconnection attempts reached (%d)", self.policy.max_attempts
                )
                self.set_state(ConnectionState.ERROR)
                self.events.emit(
                    LogicalEvent.ERROR,
                    {
                        "code": ErrorCode.MAX_RECONNECT_ATTEMPTS.value,
                        "message": "Maximum reconnection attempts reached",
                    },
                )
                return

            delay = self.policy.delay_for(attempt)
            self.set_state(ConnectionState.RECONNECTING)
            self.trace(
                "Reconnecting in %gms (attempt %d/%d)",
                delay,
                attempt,
                self.policy.max_attempts,
            )
            self.events.emit(
                LogicalEvent.RECONNECTING,
                {"attempt": attempt, "maxAttempts": self.policy.max_attempts},
            )

            await self.scheduler.wait(delay)

            try:
                await self.attempt_connection()
            except ConnectionFailedError as e:
                self.trace("Reconnect attempt %d failed", attempt)
                if not self.report_connection_failure(e):
                    return
                continue

            if self.connection_state == ConnectionState.CONNECTED:
                return
            # Dropped again before this loop resumed; the drop deferred to us

    # --- Transport callbacks ----------------------------------------------

    def on_transport_message(self, transport: Transport, name: str, payload: Any) -> None:
        if transport is not self.transport:
            logger.debug("Ignoring %s from detached transport", name)
            return

        if name == ServerMessage.CONNECTED:
            self.on_server_connected(payload)
        elif name == ServerMessage.CONNECT_ERROR:
            self.on_connect_error(payload)
        elif name == ServerMessage.DISCONNECT:
            self.on_transport_disconnect(payload)
        elif name == ServerMessage.ERROR:
            logger.warning("Server error: %s", payload)
            self.events.emit(LogicalEvent.ERROR, payload)
        elif name == ServerMessage.AUTHENTICATED:
            self.on_authenticated(payload)
        elif name == ServerMessage.AUTH_ERROR:
            self.on_auth_error(payload)
        elif routed := route_message(name, payload):
            event, data = routed
            self.events.emit(event, data)

    def on_server_connected(self, payload: Any) -> None:
        ack = self.pending_ack
        if ack is None or ack.done():
            logger.warning("Unexpected connection acknowledgment: %s", payload)
            return

        data = payload if isinstance(payload, dict) else {}
        client_id = data.get("clientId")

        self.reconnect_attempts = 0
        self.set_state(ConnectionState.CONNECTED)
        self.trace("Connected with client ID: %s", client_id)
        ack.set_result(client_id)
        self.events.emit(
            LogicalEvent.CONNECTED,
            {"clientId": client_id, "timestamp": data.get("timestamp") or now_ms()},
        )

    def on_connect_error(self, message: Any) -> None:
        if self.pending_ack is not None and not self.pending_ack.done():
            self.pending_ack.set_exception(ConnectionFailedError(str(message)))
        else:
            logger.warning("Transport reported connect_error outside a connect: %s", message)

    def on_transport_disconnect(self, reason: Any) -> None:
        reason = str(reason)
        transport, self.transport = self.transport, None
        if transport is not None:
            self.schedule_teardown(transport)

        if self.pending_ack is not None and not self.pending_ack.done():
            # Still connecting: the pending attempt handles the failure
            self.pending_ack.set_exception(
                ConnectionFailedError(f"Disconnected before acknowledgment: {reason}")
            )
            return

        self.trace("Disconnected: %s", reason)
        self.fail_pending_auth(NotConnectedError(f"Connection lost: {reason}"))
        self.authenticated_wallet = None
        self.set_state(ConnectionState.DISCONNECTED)
        self.events.emit(LogicalEvent.DISCONNECTED, {"reason": reason})

        if self.config.auto_reconnect:
            self.start_reconnect()

    def on_authenticated(self, payload: Any) -> None:
        if self.pending_auth is None or self.pending_auth[1].done():
            logger.debug("Ignoring unsolicited authentication response: %s", payload)
            return

        requested, future = self.pending_auth
        wallet = payload.get("wallet", requested) if isinstance(payload, dict) else requested

        self.authenticated_wallet = wallet
        self.trace("Authenticated as: %s", wallet)
        future.set_result(wallet)
        self.events.emit(LogicalEvent.AUTHENTICATED, {"wallet": wallet})

    def on_auth_error(self, payload: Any) -> None:
        message = payload.get("message") if isinstance(payload, dict) else payload
        self.fail_pending_auth(AuthenticationError(str(message or "Authentication failed")))

    def fail_pending_auth(self, error: Exception) -> None:
        if self.pending_auth is not None and not self.pending_auth[1].done():
            self.pending_auth[1].set_exception(error)

    # --- Subscriptions ----------------------------------------------------

    async def subscribe_prices(self, asset: Optional[str] = None) -> None:
        """Subscribe to all prices, or to a single asset such as ``"BTC"``."""
        await self.send(Request.SUBSCRIBE_PRICE, PriceSubscriptionRequest, asset=asset)
        self.trace("Subscribed to prices: %s", asset or "all")

    async def get_prices(self, assets: list[str]) -> None:
        """One-shot price request; the answer arrives as a ``prices`` event."""
        await self.send(Request.GET_PRICES, PricesRequest, assets=assets)

    async def subscribe_order_book(self, asset: str) -> None:
        await self.send(Request.SUBSCRIBE_ORDERBOOK, AssetSubscriptionRequest, asset=asset)
        self.trace("Subscribed to order book: %s", asset)

    async def subscribe_trades(self, asset: str) -> None:
        await self.send(Request.SUBSCRIBE_TRADES, AssetSubscriptionRequest, asset=asset)
        self.trace("Subscribed to trades: %s", asset)

    async def subscribe_candles(self, asset: str, interval: str) -> None:
        """Subscribe to candles for ``asset`` at ``interval`` (``"1m"``, ``"1h"``, ...)."""
        await self.send(
            Request.SUBSCRIBE_CANDLE, CandleSubscriptionRequest, coin=asset, interval=interval
        )
        self.trace("Subscribed to candles: %s %s", asset, interval)

    async def unsubscribe(self, room: str) -> None:
        """Leave a room, e.g. ``"prices:all"`` or ``"orderbook:BTC"``."""
        await self.send(Request.UNSUBSCRIBE, UnsubscribeRequest, room=room)
        self.trace("Unsubscribed from: %s", room)

    # --- User data (authenticated) ----------------------------------------

    async def authenticate(self, wallet: str) -> None:
        """Authenticate with a wallet address to receive user-specific data.

        Raises:
            NotConnectedError: not connected, or the connection dropped
                while waiting
            AuthenticationInProgressError: another attempt is outstanding
            AuthenticationError: the server rejected the wallet
            AuthenticationTimeoutError: no answer within AUTH_TIMEOUT_SECONDS
        """
        transport = self.ensure_connected()
        request = self.build(AuthenticateRequest, wallet=wallet)

        if self.pending_auth is not None:
            raise AuthenticationInProgressError(self.pending_auth[0])

        future: asyncio.Future[str] = asyncio.get_running_loop().create_future()
        self.pending_auth = (request.wallet, future)
        timeout = AUTH_TIMEOUT_SECONDS

        try:
            await transport.emit(Request.AUTHENTICATE.value, request.payload)
            await asyncio.wait_for(future, timeout=timeout)
        except asyncio.TimeoutError:
            if not future.cancelled():
                raise
            raise AuthenticationTimeoutError(timeout) from None
        finally:
            if self.pending_auth is not None and self.pending_auth[1] is future:
                self.pending_auth = None

    async def get_balance(self) -> float:
        """Fetch the authenticated wallet's balance."""
        transport = self.ensure_connected()
        self.ensure_authenticated()

        return await transport.call(
            Request.GET_USER_BALANCE.value, timeout=self.config.request_timeout
        )

    # --- Event handling ---------------------------------------------------

    def on(self, event: Union[LogicalEvent, str], handler: Handler) -> None:
        self.events.on(event, handler)

    def off(self, event: Union[LogicalEvent, str], handler: Handler) -> None:
        self.events.off(event, handler)

    def remove_all_listeners(self, event: Optional[Union[LogicalEvent, str]] = None) -> None:
        self.events.remove_all_listeners(event)

    # --- Internal ---------------------------------------------------------

    def set_state(self, state: ConnectionState) -> None:
        if state == self.connection_state:
            return
        self.connection_state = state
        self.events.emit(LogicalEvent.STATE_CHANGE, state)

    def ensure_connected(self) -> Transport:
        if self.transport is None or self.connection_state != ConnectionState.CONNECTED:
            raise NotConnectedError()
        return self.transport

    def ensure_authenticated(self) -> None:
        if self.authenticated_wallet is None:
            raise NotAuthenticatedError()

    @staticmethod
    def build(model: type[M], **fields: Any) -> M:
        try:
            return model(**fields)
        except ValidationError as e:
            raise InvalidArgumentError(
                "; ".join(f"{'.'.join(map(str, err['loc']))}: {err['msg']}" for err in e.errors())
            ) from e

    async def send(self, request: Request, model: type[RequestModel], **fields: Any) -> None:
        transport = self.ensure_connected()
        payload = self.build(model, **fields).payload
        await transport.emit(request.value, payload)

    def release(self, transport: Transport) -> None:
        if self.transport is transport:
            self.transport = None
        self.schedule_teardown(transport)

    def schedule_teardown(self, transport: Transport) -> None:
        try:
            task = asyncio.get_running_loop().create_task(self.teardown(transport))
        except RuntimeError:
            logger.warning("No running event loop; transport will close on the next close()")
            self.unclosed_transports.append(transport)
            return
        self.teardown_tasks.add(task)
        task.add_done_callback(self.teardown_tasks.discard)

    @staticmethod
    async def teardown(transport: Transport) -> None:
        try:
            await transport.close()
        except Exception as e:
            logger.warning("Error closing transport: %s", e)

    def trace(self, msg: str, *args: Any) -> None:
        logger.log(self.trace_level, msg, *args)


def now_ms() -> int:
    return int(time.time() * 1000)
