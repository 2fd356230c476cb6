"""Real-time Hyperliquid market data client for the Nylium data server."""

from nylium.client import HyperliquidClient
from nylium.common.exceptions import (
    AuthenticationError,
    AuthenticationInProgressError,
    AuthenticationTimeoutError,
    ConnectionFailedError,
    InvalidArgumentError,
    NotAuthenticatedError,
    NotConnectedError,
    NyliumError,
)
from nylium.config import ClientConfig, ConnectionState, ErrorCode, LogicalEvent, Network
from nylium.messaging.models import parse_payload

__version__ = "0.1.0"

__all__ = [
    "AuthenticationError",
    "AuthenticationInProgressError",
    "AuthenticationTimeoutError",
    "ClientConfig",
    "ConnectionFailedError",
    "ConnectionState",
    "ErrorCode",
    "HyperliquidClient",
    "InvalidArgumentError",
    "LogicalEvent",
    "Network",
    "NotAuthenticatedError",
    "NotConnectedError",
    "NyliumError",
    "parse_payload",
]
