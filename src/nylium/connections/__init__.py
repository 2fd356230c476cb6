from nylium.connections.reconnection import ReconnectPolicy, ReconnectScheduler, backoff_delay
from nylium.connections.transport import SocketIOTransport, Transport, TransportFactory

__all__ = [
    "ReconnectPolicy",
    "ReconnectScheduler",
    "SocketIOTransport",
    "Transport",
    "TransportFactory",
    "backoff_delay",
]
