"""Pydantic models for server payloads relayed by the client.

The client passes payloads through untouched; these models describe their
shape so callers can parse them at the call site::

    client.on("prices", lambda raw: show(parse_payload("prices", raw)))

Wire keys are camelCase. Models use snake_case field names with aliases and
``populate_by_name=True`` so both spellings work. Inbound models use
``extra="allow"`` so new server fields don't break parsing.
"""

import logging
from functools import lru_cache
from typing import Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter

from nylium.config.enumerations import ConnectionState, LogicalEvent

logger = logging.getLogger(__name__)

AssetType = Literal["perp", "spot"]
OrderSide = Literal["buy", "sell"]
OrderType = Literal["limit", "market", "stop", "stop_limit"]


class NyliumModel(BaseModel):
    model_config = ConfigDict(
        frozen=True,
        extra="allow",
        str_strip_whitespace=True,
        populate_by_name=True,
    )


# --- Market data ----------------------------------------------------------


class PriceData(NyliumModel):
    symbol: str = Field(description="Asset symbol, e.g. BTC")
    display_name: str = Field(alias="displayName")
    type: AssetType
    price: float = Field(description="Current price in USD")
    oracle_price: Optional[float] = Field(default=None, alias="oraclePrice")
    volume_24h: float = Field(alias="volume24h", description="24h volume in USD")
    high_24h: float = Field(alias="high24h")
    low_24h: float = Field(alias="low24h")
    change_24h: float = Field(alias="change24h")
    change_percent_24h: float = Field(alias="changePercent24h")
    funding_rate: float = Field(alias="fundingRate")
    open_interest: float = Field(alias="openInterest", description="Open interest in USD")
    max_leverage: Optional[float] = Field(default=None, alias="maxLeverage")
    last_update: int = Field(alias="lastUpdate", description="Epoch milliseconds")


class OrderBookLevel(NyliumModel):
    price: float
    size: float
    total: float = Field(description="price * size")
    orders: int = Field(description="Number of orders at this level")


class OrderBook(NyliumModel):
    asset: str
    display_name: str = Field(alias="displayName")
    type: AssetType
    bids: list[OrderBookLevel] = Field(description="Sorted high to low")
    asks: list[OrderBookLevel] = Field(description="Sorted low to high")
    spread: float
    spread_percent: float = Field(alias="spreadPercent")
    mid_price: float = Field(alias="midPrice")
    best_bid: float = Field(alias="bestBid")
    best_ask: float = Field(alias="bestAsk")
    last_update: int = Field(alias="lastUpdate")


class Trade(NyliumModel):
    id: str
    asset: str
    display_name: str = Field(alias="displayName")
    type: AssetType
    price: float
    size: float
    side: OrderSide
    value: float = Field(description="Trade value in USD")
    timestamp: int
    user: Optional[str] = Field(default=None, description="Trader address")
    hash: Optional[str] = Field(default=None, description="Transaction hash")


class TradesBatch(NyliumModel):
    asset: str
    trades: list[Trade]


class Candle(NyliumModel):
    time: int = Field(description="Candle open time")
    open: float
    high: float
    low: float
    close: float
    volume: float


class CandlesBatch(NyliumModel):
    coin: str
    interval: str
    candles: list[Candle]


# --- User data ------------------------------------------------------------


class Position(NyliumModel):
    asset: str
    display_name: str = Field(alias="displayName")
    side: Literal["long", "short"]
    size: float
    entry_price: float = Field(alias="entryPrice")
    mark_price: float = Field(alias="markPrice")
    pnl: float = Field(description="Unrealized PnL in USD")
    pnl_percent: float = Field(alias="pnlPercent")
    leverage: float
    liq_price: Optional[float] = Field(default=None, alias="liqPrice")
    timestamp: int


class PositionClosed(NyliumModel):
    asset: str


class OpenOrder(NyliumModel):
    id: str
    asset: str
    display_name: str = Field(alias="displayName")
    side: OrderSide
    type: OrderType
    price: float
    amount: float
    filled: float
    remaining: float
    timestamp: int


class OrderRemoved(NyliumModel):
    order_id: str = Field(alias="orderId")


class OrderHistory(NyliumModel):
    id: str
    asset: str
    display_name: str = Field(alias="displayName")
    side: OrderSide
    direction: Optional[
        Literal[
            "open_long",
            "open_short",
            "close_long",
            "close_short",
            "liquidation",
            "buy",
            "sell",
        ]
    ] = None
    type: OrderType
    price: float
    amount: float
    filled: float
    status: Literal["filled", "canceled", "partially_filled", "rejected", "liquidated"]
    timestamp: int
    tx_hash: Optional[str] = Field(default=None, alias="txHash")
    closed_pnl: Optional[float] = Field(default=None, alias="closedPnl")
    fee: float


class UserFunding(NyliumModel):
    # Amounts arrive as decimal strings
    time: int
    coin: str
    usdc: str
    szi: str
    funding_rate: str = Field(alias="fundingRate")


# --- Lifecycle & confirmations --------------------------------------------


class Connected(NyliumModel):
    client_id: str = Field(alias="clientId")
    timestamp: int


class Disconnected(NyliumModel):
    reason: str


class Reconnecting(NyliumModel):
    attempt: int
    max_attempts: int = Field(alias="maxAttempts")


class ErrorPayload(NyliumModel):
    code: str
    message: str


class Authenticated(NyliumModel):
    wallet: str


class Subscribed(NyliumModel):
    type: str
    asset: Optional[str] = None


class Unsubscribed(NyliumModel):
    room: str


EVENT_PAYLOADS: dict[LogicalEvent, Any] = {
    LogicalEvent.CONNECTED: Connected,
    LogicalEvent.DISCONNECTED: Disconnected,
    LogicalEvent.RECONNECTING: Reconnecting,
    LogicalEvent.ERROR: ErrorPayload,
    LogicalEvent.AUTHENTICATED: Authenticated,
    LogicalEvent.STATE_CHANGE: ConnectionState,
    LogicalEvent.PRICES: list[PriceData],
    LogicalEvent.PRICE: PriceData,
    LogicalEvent.ORDERBOOK: OrderBook,
    LogicalEvent.TRADES: TradesBatch,
    LogicalEvent.CANDLES: CandlesBatch,
    LogicalEvent.CANDLE: Candle,
    LogicalEvent.POSITIONS: list[Position],
    LogicalEvent.POSITION: Position,
    LogicalEvent.POSITION_CLOSED: PositionClosed,
    LogicalEvent.OPEN_ORDERS: list[OpenOrder],
    LogicalEvent.OPEN_ORDER: OpenOrder,
    LogicalEvent.ORDER_REMOVED: OrderRemoved,
    LogicalEvent.ORDER_HISTORY: list[OrderHistory],
    LogicalEvent.ORDER_FILL: OrderHistory,
    LogicalEvent.FUNDINGS: list[UserFunding],
    LogicalEvent.FUNDING: UserFunding,
    LogicalEvent.BALANCE: float,
    LogicalEvent.SUBSCRIBED: Subscribed,
    LogicalEvent.UNSUBSCRIBED: Unsubscribed,
}


@lru_cache(maxsize=None)
def payload_adapter(event: LogicalEvent) -> TypeAdapter[Any]:
    return TypeAdapter(EVENT_PAYLOADS[event])


def parse_payload(event: Union[LogicalEvent, str], payload: Any) -> Any:
    """Validate a raw logical-event payload into its model.

    Raises:
        ValueError: if ``event`` is not a known logical event
        pydantic.ValidationError: if the payload does not match the model
    """
    return payload_adapter(LogicalEvent(event)).validate_python(payload)
