"""Tests for the inbound server message routing table."""

import logging

from nylium.config.enumerations import LogicalEvent
from nylium.messaging.routing import INBOUND_ROUTES, route_message


def test_snapshot_and_update_pairs():
    expected = {
        "prices:snapshot": LogicalEvent.PRICES,
        "prices:update": LogicalEvent.PRICES,
        "price:snapshot": LogicalEvent.PRICE,
        "price:update": LogicalEvent.PRICE,
        "orderbook:snapshot": LogicalEvent.ORDERBOOK,
        "orderbook:update": LogicalEvent.ORDERBOOK,
        "trades:snapshot": LogicalEvent.TRADES,
        "trades:update": LogicalEvent.TRADES,
        "candle:snapshot": LogicalEvent.CANDLES,
        "candle:update": LogicalEvent.CANDLE,
        "position:snapshot": LogicalEvent.POSITIONS,
        "position:update": LogicalEvent.POSITION,
        "position:closed": LogicalEvent.POSITION_CLOSED,
        "openOrder:snapshot": LogicalEvent.OPEN_ORDERS,
        "openOrder:update": LogicalEvent.OPEN_ORDER,
        "openOrder:removed": LogicalEvent.ORDER_REMOVED,
        "orderHistory:snapshot": LogicalEvent.ORDER_HISTORY,
        "orderHistory:update": LogicalEvent.ORDER_FILL,
        "funding:snapshot": LogicalEvent.FUNDINGS,
        "funding:update": LogicalEvent.FUNDING,
        "balance:update": LogicalEvent.BALANCE,
        "subscribed": LogicalEvent.SUBSCRIBED,
        "unsubscribed": LogicalEvent.UNSUBSCRIBED,
    }

    assert {name: route.event for name, route in INBOUND_ROUTES.items()} == expected


def test_payloads_pass_through_unchanged():
    payload = {"asset": "BTC", "bids": [], "asks": []}

    event, data = route_message("orderbook:update", payload)

    assert event == LogicalEvent.ORDERBOOK
    assert data is payload


def test_balance_update_lifts_balance_field():
    assert route_message("balance:update", {"balance": 987.65}) == (
        LogicalEvent.BALANCE,
        987.65,
    )


def test_malformed_balance_update_is_dropped(caplog):
    with caplog.at_level(logging.WARNING, logger="nylium.messaging.routing"):
        assert route_message("balance:update", {"total": 1.0}) is None
        assert route_message("balance:update", None) is None

    assert "Malformed balance:update message" in caplog.text


def test_unknown_message_has_no_route():
    assert route_message("authenticated", {"wallet": "0x1"}) is None
    assert route_message("heartbeat", None) is None
