"""Unit tests for subscriptions and inbound event relay."""

import logging

import pytest

from nylium.common.exceptions import InvalidArgumentError, NotConnectedError
from nylium.config.enumerations import LogicalEvent


@pytest.mark.asyncio
async def test_requests_require_connection(make_client, factory):
    """Every request raises NotConnectedError before touching a transport."""
    client = make_client()
    requests = [
        client.subscribe_prices,
        lambda: client.get_prices(["BTC"]),
        lambda: client.subscribe_order_book("BTC"),
        lambda: client.subscribe_trades("BTC"),
        lambda: client.subscribe_candles("BTC", "1m"),
        lambda: client.unsubscribe("prices:all"),
    ]

    for request in requests:
        with pytest.raises(NotConnectedError):
            await request()

    assert factory.created == []


@pytest.mark.asyncio
async def test_requests_fail_after_drop(make_client, factory):
    client = make_client(auto_reconnect=False)
    await client.connect()
    transport = factory.last
    transport.push("disconnect", "transport close")

    with pytest.raises(NotConnectedError):
        await client.subscribe_trades("ETH")

    assert transport.emitted == []
    await client.close()


@pytest.mark.asyncio
async def test_subscription_wire_format(make_client, factory):
    """Each request maps to its outbound message name and payload."""
    client = make_client()
    await client.connect()

    await client.subscribe_prices()
    await client.subscribe_prices("BTC")
    await client.get_prices(["BTC", "ETH"])
    await client.subscribe_order_book("BTC")
    await client.subscribe_trades("SOL")
    await client.subscribe_candles("ETH", "1h")
    await client.unsubscribe("orderbook:BTC")

    assert factory.last.emitted == [
        ("subscribe:price", {}),
        ("subscribe:price", {"asset": "BTC"}),
        ("get:prices", {"assets": ["BTC", "ETH"]}),
        ("subscribe:orderbook", {"asset": "BTC"}),
        ("subscribe:trades", {"asset": "SOL"}),
        ("subscribe:candle", {"coin": "ETH", "interval": "1h"}),
        ("unsubscribe", {"room": "orderbook:BTC"}),
    ]
    await client.close()


@pytest.mark.asyncio
async def test_invalid_arguments_send_nothing(make_client, factory):
    client = make_client()
    await client.connect()

    with pytest.raises(InvalidArgumentError, match="asset"):
        await client.subscribe_order_book("")
    with pytest.raises(InvalidArgumentError, match="assets"):
        await client.get_prices([])
    with pytest.raises(InvalidArgumentError, match="interval"):
        await client.subscribe_candles("BTC", "")

    assert factory.last.emitted == []
    await client.close()


@pytest.mark.asyncio
async def test_snapshot_and_update_share_logical_event(make_client, factory, recorder):
    """prices:snapshot and prices:update both surface as `prices`, payload untouched."""
    client = make_client()
    await client.connect()
    events = recorder(client, LogicalEvent.PRICES)
    snapshot = [{"symbol": "BTC", "price": 65000.0}, {"symbol": "ETH", "price": 3200.0}]
    update = [{"symbol": "BTC", "price": 65010.5}]

    factory.last.push("prices:snapshot", snapshot)
    factory.last.push("prices:update", update)

    assert len(events[LogicalEvent.PRICES]) == 2
    assert events[LogicalEvent.PRICES][0] is snapshot
    assert events[LogicalEvent.PRICES][1] is update
    await client.close()


@pytest.mark.asyncio
async def test_inbound_routes(make_client, factory, recorder):
    client = make_client()
    await client.connect()
    events = recorder(
        client,
        LogicalEvent.CANDLES,
        LogicalEvent.CANDLE,
        LogicalEvent.ORDER_FILL,
        LogicalEvent.BALANCE,
        LogicalEvent.SUBSCRIBED,
    )
    transport = factory.last

    transport.push("candle:snapshot", {"coin": "BTC", "interval": "1m", "candles": []})
    transport.push("candle:update", {"time": 1, "open": 1.0})
    transport.push("orderHistory:update", {"id": "42"})
    transport.push("balance:update", {"balance": 1520.75})
    transport.push("subscribed", {"type": "orderbook", "asset": "BTC"})

    assert events[LogicalEvent.CANDLES] == [{"coin": "BTC", "interval": "1m", "candles": []}]
    assert events[LogicalEvent.CANDLE] == [{"time": 1, "open": 1.0}]
    assert events[LogicalEvent.ORDER_FILL] == [{"id": "42"}]
    assert events[LogicalEvent.BALANCE] == [1520.75]
    assert events[LogicalEvent.SUBSCRIBED] == [{"type": "orderbook", "asset": "BTC"}]
    await client.close()


@pytest.mark.asyncio
async def test_server_error_is_relayed(make_client, factory, recorder):
    client = make_client()
    await client.connect()
    events = recorder(client, LogicalEvent.ERROR)

    factory.last.push("error", {"code": "INVALID_ASSET", "message": "Unknown asset: XYZ"})

    assert events[LogicalEvent.ERROR] == [
        {"code": "INVALID_ASSET", "message": "Unknown asset: XYZ"}
    ]
    assert client.is_connected()
    await client.close()


@pytest.mark.asyncio
async def test_unknown_server_message_is_dropped(make_client, factory, caplog):
    client = make_client()
    await client.connect()
    seen = []
    for event in LogicalEvent:
        client.on(event, seen.append)

    with caplog.at_level(logging.DEBUG, logger="nylium.messaging.routing"):
        factory.last.push("mystery:event", {"x": 1})

    assert seen == []
    assert "No route for server message mystery:event" in caplog.text
    await client.close()


@pytest.mark.asyncio
async def test_off_and_remove_all_listeners(make_client, factory):
    client = make_client()
    await client.connect()
    prices, trades = [], []
    client.on("prices", prices.append)
    client.on("trades", trades.append)

    client.off("prices", prices.append)
    factory.last.push("prices:update", [])
    client.remove_all_listeners()
    factory.last.push("trades:update", {"asset": "BTC", "trades": []})

    assert prices == []
    assert trades == []
    await client.close()
