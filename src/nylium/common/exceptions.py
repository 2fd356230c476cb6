import logging
from abc import ABC
from typing import Optional

logger = logging.getLogger(__name__)


class NyliumError(Exception, ABC):
    """Base exception for the Nylium SDK."""

    def __init__(self, message: str, code: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.code = code

    def __str__(self) -> str:
        base_message = super().__str__()
        if self.code is not None:
            return f"{base_message} (Code: {self.code})"
        return base_message


class InvalidArgumentError(NyliumError):
    """Raised when an invalid argument is provided."""

    def __init__(self, context: str):
        super().__init__(f"Invalid argument: {context}")


class NotConnectedError(NyliumError):
    """Raised when an operation requires an active connection."""

    def __init__(self, message: str = "Not connected. Call connect() first."):
        super().__init__(message)


class NotAuthenticatedError(NyliumError):
    """Raised when an operation requires an authenticated wallet."""

    def __init__(
        self, message: str = "Not authenticated. Call authenticate(wallet) first."
    ):
        super().__init__(message)


class ConnectionFailedError(NyliumError, ConnectionError):
    """Raised when the transport fails before the server acknowledges the connection."""

    def __init__(self, message: str, original_exception: Optional[BaseException] = None):
        super().__init__(message, code="CONNECTION_ERROR")
        self.original_exception = original_exception


class AuthenticationError(NyliumError):
    """Raised when the server rejects an authentication request."""

    def __init__(self, message: str):
        super().__init__(message)


class AuthenticationTimeoutError(AuthenticationError, TimeoutError):
    """Raised when the server does not answer an authentication request in time."""

    def __init__(self, timeout: float):
        super().__init__(f"Authentication timeout after {timeout:g}s")
        self.timeout = timeout


class AuthenticationInProgressError(AuthenticationError):
    """Raised when authenticate() is called while another attempt is outstanding."""

    def __init__(self, wallet: str):
        super().__init__(f"Authentication already in progress for {wallet}")
        self.wallet = wallet


__all__ = [
    "NyliumError",
    "InvalidArgumentError",
    "NotConnectedError",
    "NotAuthenticatedError",
    "ConnectionFailedError",
    "AuthenticationError",
    "AuthenticationTimeoutError",
    "AuthenticationInProgressError",
]
