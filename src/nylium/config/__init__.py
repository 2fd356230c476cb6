from nylium.config.enumerations import (
    NETWORK_URLS,
    ConnectionState,
    ErrorCode,
    LogicalEvent,
    Network,
    Request,
    ServerMessage,
)
from nylium.config.settings import ClientConfig

__all__ = [
    "NETWORK_URLS",
    "ClientConfig",
    "ConnectionState",
    "ErrorCode",
    "LogicalEvent",
    "Network",
    "Request",
    "ServerMessage",
]
