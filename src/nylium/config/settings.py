from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from nylium.config.enumerations import NETWORK_URLS, Network


class ClientConfig(BaseSettings):
    """Connection settings for a ``HyperliquidClient``.

    Values are read from ``NYLIUM_*`` environment variables (or an env file
    passed as ``_env_file``) and overridden by keyword arguments. The model is
    frozen: a client's configuration never changes after construction.
    """

    network: Network = Network.MAINNET
    url: Optional[str] = Field(
        default=None, description="Server URL, overrides the network default"
    )
    auto_reconnect: bool = True
    reconnect_delay: int = Field(
        default=1000, ge=0, description="Base reconnect delay in milliseconds"
    )
    max_reconnect_attempts: int = Field(default=10, ge=0)
    debug: bool = False
    connect_timeout: float = Field(
        default=20.0, gt=0, description="Seconds to wait for the connection ack"
    )
    request_timeout: float = Field(
        default=60.0, gt=0, description="Seconds to wait for callback responses"
    )

    model_config = SettingsConfigDict(
        env_prefix="NYLIUM_",
        frozen=True,
        extra="forbid",
    )

    @property
    def server_url(self) -> str:
        return self.url or NETWORK_URLS[self.network]
