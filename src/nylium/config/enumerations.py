import logging
from enum import Enum

logger = logging.getLogger(__name__)


class Network(str, Enum):
    MAINNET = "mainnet"
    TESTNET = "testnet"


NETWORK_URLS: dict[Network, str] = {
    Network.MAINNET: "wss://api.nylium.xyz",
    Network.TESTNET: "wss://testnet.api.nylium.xyz",
}


class ConnectionState(str, Enum):
    """Defines possible states for a client connection."""

    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    RECONNECTING = "reconnecting"
    ERROR = "error"


class ErrorCode(str, Enum):
    CONNECTION_ERROR = "CONNECTION_ERROR"
    MAX_RECONNECT_ATTEMPTS = "MAX_RECONNECT_ATTEMPTS"


class LogicalEvent(str, Enum):
    """Caller-facing event names exposed by the client."""

    # Lifecycle
    CONNECTED = "connected"
    DISCONNECTED = "disconnected"
    RECONNECTING = "reconnecting"
    ERROR = "error"
    AUTHENTICATED = "authenticated"
    STATE_CHANGE = "stateChange"

    # Market data
    PRICES = "prices"
    PRICE = "price"
    ORDERBOOK = "orderbook"
    TRADES = "trades"
    CANDLES = "candles"
    CANDLE = "candle"

    # User data
    POSITIONS = "positions"
    POSITION = "position"
    POSITION_CLOSED = "positionClosed"
    OPEN_ORDERS = "openOrders"
    OPEN_ORDER = "openOrder"
    ORDER_REMOVED = "orderRemoved"
    ORDER_HISTORY = "orderHistory"
    ORDER_FILL = "orderFill"
    FUNDINGS = "fundings"
    FUNDING = "funding"
    BALANCE = "balance"

    # Subscription confirmations
    SUBSCRIBED = "subscribed"
    UNSUBSCRIBED = "unsubscribed"


class ServerMessage(str, Enum):
    """Inbound lifecycle messages consumed by the state machine itself."""

    CONNECTED = "connected"
    CONNECT_ERROR = "connect_error"
    DISCONNECT = "disconnect"
    ERROR = "error"
    AUTHENTICATED = "authenticated"
    AUTH_ERROR = "auth:error"


class Request(str, Enum):
    """Outbound request message names."""

    SUBSCRIBE_PRICE = "subscribe:price"
    GET_PRICES = "get:prices"
    SUBSCRIBE_ORDERBOOK = "subscribe:orderbook"
    SUBSCRIBE_TRADES = "subscribe:trades"
    SUBSCRIBE_CANDLE = "subscribe:candle"
    UNSUBSCRIBE = "unsubscribe"
    AUTHENTICATE = "authenticate"
    GET_USER_BALANCE = "get:userBalance"
