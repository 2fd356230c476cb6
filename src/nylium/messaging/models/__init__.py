from nylium.messaging.models.events import (
    EVENT_PAYLOADS,
    Authenticated,
    Candle,
    CandlesBatch,
    Connected,
    Disconnected,
    ErrorPayload,
    NyliumModel,
    OpenOrder,
    OrderBook,
    OrderBookLevel,
    OrderHistory,
    OrderRemoved,
    Position,
    PositionClosed,
    PriceData,
    Reconnecting,
    Subscribed,
    Trade,
    TradesBatch,
    Unsubscribed,
    UserFunding,
    parse_payload,
)
from nylium.messaging.models.messages import (
    AssetSubscriptionRequest,
    AuthenticateRequest,
    CandleSubscriptionRequest,
    PriceSubscriptionRequest,
    PricesRequest,
    RequestModel,
    UnsubscribeRequest,
)

__all__ = [
    "EVENT_PAYLOADS",
    "AssetSubscriptionRequest",
    "AuthenticateRequest",
    "Authenticated",
    "Candle",
    "CandleSubscriptionRequest",
    "CandlesBatch",
    "Connected",
    "Disconnected",
    "ErrorPayload",
    "NyliumModel",
    "OpenOrder",
    "OrderBook",
    "OrderBookLevel",
    "OrderHistory",
    "OrderRemoved",
    "Position",
    "PositionClosed",
    "PriceData",
    "PriceSubscriptionRequest",
    "PricesRequest",
    "Reconnecting",
    "RequestModel",
    "Subscribed",
    "Trade",
    "TradesBatch",
    "UnsubscribeRequest",
    "Unsubscribed",
    "UserFunding",
    "parse_payload",
]
