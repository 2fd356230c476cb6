"""Outbound request payloads.

Outbound models use ``extra="forbid"`` and ``min_length`` checks so a bad
argument fails at construction time, before anything is sent.
"""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class RequestModel(BaseModel):
    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        str_strip_whitespace=True,
    )

    @property
    def payload(self) -> dict[str, Any]:
        return self.model_dump(exclude_none=True)


class PriceSubscriptionRequest(RequestModel):
    """``subscribe:price``: an empty payload subscribes to every asset.

    Wire format::

        {"asset": "BTC"}  or  {}
    """

    asset: Optional[str] = Field(default=None, min_length=1)


class PricesRequest(RequestModel):
    """``get:prices``: one-shot price lookup.

    Wire format::

        {"assets": ["BTC", "ETH"]}
    """

    assets: list[str] = Field(min_length=1)


class AssetSubscriptionRequest(RequestModel):
    """``subscribe:orderbook`` and ``subscribe:trades``."""

    asset: str = Field(min_length=1)


class CandleSubscriptionRequest(RequestModel):
    """``subscribe:candle``: the server names the asset ``coin``.

    Wire format::

        {"coin": "BTC", "interval": "1m"}
    """

    coin: str = Field(min_length=1)
    interval: str = Field(min_length=1)


class UnsubscribeRequest(RequestModel):
    """``unsubscribe``: room keys look like ``prices:all`` or ``orderbook:BTC``."""

    room: str = Field(min_length=1)


class AuthenticateRequest(RequestModel):
    wallet: str = Field(min_length=1)
