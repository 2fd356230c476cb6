import logging
from dataclasses import dataclass
from typing import Any, Optional

from nylium.config.enumerations import LogicalEvent

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Route:
    """Where an inbound server message goes.

    ``field`` names a single key to lift out of the payload; ``None`` relays
    the payload as received.
    """

    event: LogicalEvent
    field: Optional[str] = None

    def extract(self, payload: Any) -> Any:
        if self.field is None:
            return payload
        return payload[self.field]


INBOUND_ROUTES: dict[str, Route] = {
    # Prices
    "prices:snapshot": Route(LogicalEvent.PRICES),
    "prices:update": Route(LogicalEvent.PRICES),
    "price:snapshot": Route(LogicalEvent.PRICE),
    "price:update": Route(LogicalEvent.PRICE),
    # Order book
    "orderbook:snapshot": Route(LogicalEvent.ORDERBOOK),
    "orderbook:update": Route(LogicalEvent.ORDERBOOK),
    # Trades
    "trades:snapshot": Route(LogicalEvent.TRADES),
    "trades:update": Route(LogicalEvent.TRADES),
    # Candles: the snapshot is a batch, updates are single candles
    "candle:snapshot": Route(LogicalEvent.CANDLES),
    "candle:update": Route(LogicalEvent.CANDLE),
    # Positions
    "position:snapshot": Route(LogicalEvent.POSITIONS),
    "position:update": Route(LogicalEvent.POSITION),
    "position:closed": Route(LogicalEvent.POSITION_CLOSED),
    # Open orders
    "openOrder:snapshot": Route(LogicalEvent.OPEN_ORDERS),
    "openOrder:update": Route(LogicalEvent.OPEN_ORDER),
    "openOrder:removed": Route(LogicalEvent.ORDER_REMOVED),
    # Order history
    "orderHistory:snapshot": Route(LogicalEvent.ORDER_HISTORY),
    "orderHistory:update": Route(LogicalEvent.ORDER_FILL),
    # Funding
    "funding:snapshot": Route(LogicalEvent.FUNDINGS),
    "funding:update": Route(LogicalEvent.FUNDING),
    # Balance
    "balance:update": Route(LogicalEvent.BALANCE, field="balance"),
    # Subscription confirmations
    "subscribed": Route(LogicalEvent.SUBSCRIBED),
    "unsubscribed": Route(LogicalEvent.UNSUBSCRIBED),
}


def route_message(name: str, payload: Any) -> Optional[tuple[LogicalEvent, Any]]:
    """Translate an inbound server message into ``(logical event, payload)``.

    Returns None for names with no route.
    """
    route = INBOUND_ROUTES.get(name)
    if route is None:
        logger.debug("No route for server message %s", name)
        return None

    try:
        return route.event, route.extract(payload)
    except (KeyError, TypeError):
        logger.warning(
            "Malformed %s message, expected a '%s' field: %r", name, route.field, payload
        )
        return None
