"""Shared fixtures: an in-memory transport and a client wired to it."""

import asyncio
from typing import Any, Callable, Optional, Union

import pytest

from nylium.client import HyperliquidClient
from nylium.common.exceptions import ConnectionFailedError
from nylium.config.enumerations import LogicalEvent
from nylium.config.settings import ClientConfig
from nylium.connections.reconnection import ReconnectScheduler

# How a fake transport behaves once opened
ACK = "ack"
SILENT = "silent"
REJECT = "reject"

Outcome = Union[str, BaseException]


class FakeTransport:
    """Records traffic and lets tests push server messages."""

    def __init__(self, outcome: Outcome = ACK, client_id: str = "client-1") -> None:
        self.outcome = outcome
        self.client_id = client_id
        self.dispatch: Optional[Callable[[str, Any], None]] = None
        self.url: Optional[str] = None
        self.emitted: list[tuple[str, Any]] = []
        self.calls: list[tuple[str, Any]] = []
        self.call_result: Any = None
        self.close_count = 0

    def bind(self, dispatch: Callable[[str, Any], None]) -> None:
        self.dispatch = dispatch

    async def open(self, url: str, timeout: float) -> None:
        self.url = url
        if isinstance(self.outcome, BaseException):
            raise self.outcome

        loop = asyncio.get_running_loop()
        if self.outcome == ACK:
            loop.call_soon(self.push, "connected", {"clientId": self.client_id, "timestamp": 1700000000000})
        elif self.outcome == REJECT:
            loop.call_soon(self.push, "connect_error", "unauthorized")

    async def emit(self, event: str, data: Any = None) -> None:
        self.emitted.append((event, data))

    async def call(self, event: str, data: Any = None, timeout: float = 60.0) -> Any:
        self.calls.append((event, data))
        return self.call_result

    async def close(self) -> None:
        self.close_count += 1

    @property
    def closed(self) -> bool:
        return self.close_count > 0

    def push(self, name: str, payload: Any = None) -> None:
        assert self.dispatch is not None
        self.dispatch(name, payload)


class FakeTransportFactory:
    """Hands out FakeTransports, one outcome per connection attempt."""

    def __init__(self) -> None:
        self.outcomes: list[Outcome] = []
        self.created: list[FakeTransport] = []

    def __call__(self) -> FakeTransport:
        outcome = self.outcomes.pop(0) if self.outcomes else ACK
        transport = FakeTransport(outcome, client_id=f"client-{len(self.created) + 1}")
        self.created.append(transport)
        return transport

    @property
    def last(self) -> FakeTransport:
        return self.created[-1]


class RecordingSleep:
    """Backoff timer that records delays and returns immediately."""

    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)
        await asyncio.sleep(0)


class Recorder:
    """Collects logical event payloads per event."""

    def __init__(self, client: HyperliquidClient, *events: LogicalEvent) -> None:
        self.received: dict[LogicalEvent, list[Any]] = {event: [] for event in events}
        for event in events:
            client.on(event, self.received[event].append)

    def __getitem__(self, event: LogicalEvent) -> list[Any]:
        return self.received[event]


def connection_failure(message: str = "Connection refused") -> ConnectionFailedError:
    return ConnectionFailedError(message)


@pytest.fixture
def factory() -> FakeTransportFactory:
    return FakeTransportFactory()


@pytest.fixture
def sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def make_client(
    factory: FakeTransportFactory, sleep: RecordingSleep
) -> Callable[..., HyperliquidClient]:
    def make(**options: Any) -> HyperliquidClient:
        options.setdefault("reconnect_delay", 100)
        options.setdefault("max_reconnect_attempts", 2)
        return HyperliquidClient(
            ClientConfig(**options),
            transport_factory=factory,
            scheduler=ReconnectScheduler(sleep=sleep),
        )

    return make


@pytest.fixture
def recorder() -> type[Recorder]:
    return Recorder


@pytest.fixture
def failure() -> Callable[..., ConnectionFailedError]:
    return connection_failure
