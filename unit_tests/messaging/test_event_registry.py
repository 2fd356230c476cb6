"""Tests for EventRegistry fan-out and handler isolation."""

import logging

import pytest

from nylium.common.exceptions import InvalidArgumentError
from nylium.config.enumerations import LogicalEvent
from nylium.messaging.registry import EventRegistry


def test_handlers_run_in_registration_order():
    registry = EventRegistry()
    calls = []
    registry.on("price", lambda data: calls.append(("first", data)))
    registry.on(LogicalEvent.PRICE, lambda data: calls.append(("second", data)))

    registry.emit(LogicalEvent.PRICE, {"symbol": "BTC"})

    assert calls == [("first", {"symbol": "BTC"}), ("second", {"symbol": "BTC"})]


def test_failing_handler_does_not_block_others(caplog):
    """A handler that raises is logged; later handlers still receive the event."""
    registry = EventRegistry()
    received = []

    def broken(_data):
        raise ValueError("handler bug")

    registry.on("trades", broken)
    registry.on("trades", received.append)

    with caplog.at_level(logging.ERROR, logger="nylium.messaging.registry"):
        registry.emit(LogicalEvent.TRADES, {"asset": "ETH", "trades": []})

    assert received == [{"asset": "ETH", "trades": []}]
    assert "Error in trades handler" in caplog.text
    assert "handler bug" in caplog.text


def test_same_handler_registered_once():
    registry = EventRegistry()
    received = []

    registry.on("balance", received.append)
    registry.on("balance", received.append)
    registry.emit(LogicalEvent.BALANCE, 10.0)

    assert received == [10.0]
    assert registry.listener_count("balance") == 1


def test_off_removes_only_that_handler():
    registry = EventRegistry()
    kept, removed = [], []
    registry.on("candle", kept.append)
    registry.on("candle", removed.append)

    registry.off("candle", removed.append)
    registry.off("candle", lambda _: None)
    registry.emit(LogicalEvent.CANDLE, {"close": 1.0})

    assert kept == [{"close": 1.0}]
    assert removed == []


def test_remove_all_listeners_for_one_event():
    registry = EventRegistry()
    registry.on("prices", lambda _: None)
    registry.on("orderbook", lambda _: None)

    registry.remove_all_listeners("prices")

    assert registry.listener_count("prices") == 0
    assert registry.listener_count("orderbook") == 1

    registry.remove_all_listeners()
    assert registry.listener_count("orderbook") == 0


def test_handler_may_unsubscribe_during_delivery():
    registry = EventRegistry()
    calls = []

    def once(data):
        calls.append(data)
        registry.off("funding", once)

    registry.on("funding", once)
    registry.on("funding", calls.append)
    registry.emit(LogicalEvent.FUNDING, 1)
    registry.emit(LogicalEvent.FUNDING, 2)

    assert calls == [1, 1, 2]


def test_unknown_event_name_is_rejected():
    registry = EventRegistry()

    with pytest.raises(InvalidArgumentError, match="unknown event 'price_update'"):
        registry.on("price_update", lambda _: None)
