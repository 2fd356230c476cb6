"""
Click CLI for streaming Nylium market data.

This module implements the `nylium` CLI tool with `stream` and `account`
subcommands. Subscriptions are (re)issued on every `connected` event so a
reconnect restores the feeds exactly once.
"""

import asyncio
import logging
import sys
from typing import Any, Awaitable, Callable, Optional

import click
from pydantic import ValidationError

from nylium import __version__
from nylium.client import HyperliquidClient
from nylium.common.exceptions import NyliumError
from nylium.common.logging import setup_logging
from nylium.config.enumerations import ConnectionState, LogicalEvent, Network
from nylium.config.settings import ClientConfig
from nylium.messaging.models import (
    Candle,
    OpenOrder,
    OrderBook,
    Position,
    PriceData,
    Trade,
    parse_payload,
)

logger = logging.getLogger(__name__)

# Valid log levels for validation
VALID_LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR"]

# Candle intervals served by Hyperliquid
VALID_INTERVALS = ["1m", "3m", "5m", "15m", "30m", "1h", "2h", "4h", "8h", "12h", "1d", "3d", "1w", "1M"]

ORDER_BOOK_DEPTH = 5

Printer = Callable[[str], None]


# --- Option validation -----------------------------------------------------


def validate_asset(
    _ctx: click.Context, _param: click.Parameter, value: Optional[str]
) -> Optional[str]:
    """Normalize an asset symbol to upper case."""
    if value is None:
        return None
    symbol = value.strip().upper()
    if not symbol or not symbol.replace("-", "").replace("/", "").isalnum():
        raise click.BadParameter(f"Invalid asset symbol: '{value}'")
    return symbol


def validate_interval(
    _ctx: click.Context, _param: click.Parameter, value: Optional[str]
) -> Optional[str]:
    """Validate candle interval."""
    if value is None:
        return None
    if value not in VALID_INTERVALS:
        raise click.BadParameter(
            f"Invalid interval: '{value}'. Valid intervals: {', '.join(VALID_INTERVALS)}"
        )
    return value


def validate_log_level(_ctx: click.Context, _param: click.Parameter, value: str) -> str:
    """Validate log level."""
    value_upper = value.upper()
    if value_upper not in VALID_LOG_LEVELS:
        raise click.BadParameter(
            f"Invalid log level: '{value}'. "
            f"Valid levels: {', '.join(VALID_LOG_LEVELS)}"
        )
    return value_upper


def build_config(
    network: Optional[str],
    url: Optional[str],
    env_file: Optional[str],
    debug: bool,
) -> ClientConfig:
    """Build client settings; unset options fall back to NYLIUM_* env vars."""
    options: dict[str, Any] = {"debug": debug}
    if network is not None:
        options["network"] = Network(network)
    if url is not None:
        options["url"] = url
    return ClientConfig(_env_file=env_file, **options)  # type: ignore[call-arg]


# --- Formatting ------------------------------------------------------------


def format_price(price: PriceData) -> str:
    change = f"{price.change_percent_24h:+.2f}%"
    return (
        f"{price.symbol:<8} ${price.price:>12,.2f} {change:>8}  "
        f"Vol: ${price.volume_24h / 1e6:.1f}M"
    )


def format_order_book(book: OrderBook, depth: int = ORDER_BOOK_DEPTH) -> str:
    lines = [
        f"{book.asset} order book  mid ${book.mid_price:,.2f}  "
        f"spread ${book.spread:,.4f} ({book.spread_percent:.4f}%)"
    ]
    for ask in reversed(book.asks[:depth]):
        lines.append(f"  ASK ${ask.price:>12,.2f}  {ask.size:>12.4f}")
    for bid in book.bids[:depth]:
        lines.append(f"  BID ${bid.price:>12,.2f}  {bid.size:>12.4f}")
    return "\n".join(lines)


def format_trade(trade: Trade) -> str:
    return (
        f"{trade.asset:<8} {trade.side.upper():<4} {trade.size:>12.4f} @ "
        f"${trade.price:,.2f}  (${trade.value:,.2f})"
    )


def format_candle(coin: str, interval: str, candle: Candle) -> str:
    return (
        f"{coin} {interval}  O {candle.open:,.2f}  H {candle.high:,.2f}  "
        f"L {candle.low:,.2f}  C {candle.close:,.2f}  V {candle.volume:,.2f}"
    )


def format_position(position: Position) -> str:
    return (
        f"{position.asset:<8} {position.side.upper():<5} {position.size:>12.4f} "
        f"entry ${position.entry_price:,.2f}  PnL ${position.pnl:,.2f} "
        f"({position.pnl_percent:+.2f}%)"
    )


def format_open_order(order: OpenOrder) -> str:
    return (
        f"{order.id} {order.asset:<8} {order.side.upper():<4} {order.type:<10} "
        f"{order.remaining:.4f}/{order.amount:.4f} @ ${order.price:,.2f}"
    )


def printing(event: LogicalEvent, render: Callable[[Any], str], echo: Printer) -> Callable[[Any], None]:
    """Handler that parses a payload and echoes it, or logs why it can't."""

    def handler(payload: Any) -> None:
        try:
            parsed = parse_payload(event, payload)
        except ValidationError as e:
            logger.warning("Unparseable %s payload: %s", event.value, e)
            return
        echo(render(parsed))

    return handler


# --- Runners ---------------------------------------------------------------


def resubscribe_on_connect(
    client: HyperliquidClient, subscribe: Callable[[], Awaitable[None]]
) -> set[asyncio.Task[None]]:
    """Run ``subscribe`` once per established connection."""
    tasks: set[asyncio.Task[None]] = set()

    async def guarded() -> None:
        try:
            await subscribe()
        except (NyliumError, TimeoutError) as e:
            logger.error("Subscription failed: %s", e)

    def on_connected(_payload: Any) -> None:
        task = asyncio.ensure_future(guarded())
        tasks.add(task)
        task.add_done_callback(tasks.discard)

    client.on(LogicalEvent.CONNECTED, on_connected)
    return tasks


async def run_until_stopped(client: HyperliquidClient, duration: Optional[float]) -> bool:
    """Wait for ``duration`` seconds (forever if None).

    Returns False if the client gave up reconnecting first.
    """
    failed = asyncio.Event()

    def on_state(state: ConnectionState) -> None:
        if state == ConnectionState.ERROR:
            failed.set()

    client.on(LogicalEvent.STATE_CHANGE, on_state)
    try:
        await asyncio.wait_for(failed.wait(), timeout=duration)
    except asyncio.TimeoutError:
        return True
    return False


async def run_stream(
    config: ClientConfig,
    asset: Optional[str],
    orderbook: bool,
    trades: bool,
    interval: Optional[str],
    duration: Optional[float],
    echo: Printer = click.echo,
) -> bool:
    client = HyperliquidClient(config)

    client.on(LogicalEvent.PRICES, printing(LogicalEvent.PRICES, lambda ps: "\n".join(format_price(p) for p in ps), echo))
    client.on(LogicalEvent.PRICE, printing(LogicalEvent.PRICE, format_price, echo))
    client.on(LogicalEvent.ORDERBOOK, printing(LogicalEvent.ORDERBOOK, format_order_book, echo))
    client.on(
        LogicalEvent.TRADES,
        printing(LogicalEvent.TRADES, lambda batch: "\n".join(format_trade(t) for t in batch.trades), echo),
    )
    client.on(
        LogicalEvent.CANDLES,
        printing(
            LogicalEvent.CANDLES,
            lambda batch: "\n".join(format_candle(batch.coin, batch.interval, c) for c in batch.candles),
            echo,
        ),
    )
    client.on(
        LogicalEvent.CANDLE,
        printing(LogicalEvent.CANDLE, lambda c: format_candle(asset or "", interval or "", c), echo),
    )
    client.on(LogicalEvent.ERROR, lambda err: logger.error("Server error: %s", err))
    client.on(
        LogicalEvent.RECONNECTING,
        lambda info: logger.warning("Reconnecting (%s/%s)", info["attempt"], info["maxAttempts"]),
    )

    async def subscribe() -> None:
        await client.subscribe_prices(asset)
        if asset and orderbook:
            await client.subscribe_order_book(asset)
        if asset and trades:
            await client.subscribe_trades(asset)
        if asset and interval:
            await client.subscribe_candles(asset, interval)

    resubscribe_on_connect(client, subscribe)

    async with client:
        return await run_until_stopped(client, duration)


async def run_account(
    config: ClientConfig,
    wallet: str,
    duration: Optional[float],
    echo: Printer = click.echo,
) -> bool:
    client = HyperliquidClient(config)

    client.on(
        LogicalEvent.POSITIONS,
        printing(LogicalEvent.POSITIONS, lambda ps: "\n".join(format_position(p) for p in ps) or "No open positions", echo),
    )
    client.on(LogicalEvent.POSITION, printing(LogicalEvent.POSITION, format_position, echo))
    client.on(LogicalEvent.POSITION_CLOSED, lambda data: echo(f"Position closed: {data.get('asset')}"))
    client.on(
        LogicalEvent.OPEN_ORDERS,
        printing(LogicalEvent.OPEN_ORDERS, lambda os: "\n".join(format_open_order(o) for o in os) or "No open orders", echo),
    )
    client.on(LogicalEvent.OPEN_ORDER, printing(LogicalEvent.OPEN_ORDER, format_open_order, echo))
    client.on(LogicalEvent.ORDER_REMOVED, lambda data: echo(f"Order removed: {data.get('orderId')}"))
    client.on(LogicalEvent.BALANCE, lambda balance: echo(f"Balance: ${balance:,.2f}"))

    async def authenticate() -> None:
        await client.authenticate(wallet)
        balance = await client.get_balance()
        echo(f"Balance: ${balance:,.2f}")

    resubscribe_on_connect(client, authenticate)

    async with client:
        return await run_until_stopped(client, duration)


# --- Commands --------------------------------------------------------------


def common_options(func: Callable[..., Any]) -> Callable[..., Any]:
    options = [
        click.option(
            "--network",
            type=click.Choice([n.value for n in Network]),
            default=None,
            help="Network to connect to. Default: NYLIUM_NETWORK or mainnet",
        ),
        click.option("--url", default=None, help="Server URL (overrides the network default)"),
        click.option(
            "--env-file",
            type=click.Path(dir_okay=False),
            default=None,
            help="Read NYLIUM_* settings from this file",
        ),
        click.option(
            "--duration",
            type=click.FloatRange(min=0, min_open=True),
            default=None,
            help="Seconds to run before exiting. Default: until interrupted",
        ),
        click.option(
            "--log-level",
            default="INFO",
            callback=validate_log_level,
            help="Logging level (DEBUG, INFO, WARNING, ERROR). Default: INFO",
        ),
        click.option("--json-logs", is_flag=True, help="Emit logs as JSON lines"),
    ]
    for option in reversed(options):
        func = option(func)
    return func


def execute(runner: Awaitable[bool]) -> None:
    try:
        ok = asyncio.run(runner)  # type: ignore[arg-type]
    except KeyboardInterrupt:
        logger.info("Received interrupt signal - shutting down")
        sys.exit(0)
    except NyliumError as e:
        logger.error("Fatal error: %s", e)
        sys.exit(1)
    sys.exit(0 if ok else 1)


@click.group()
@click.version_option(version=__version__, prog_name="nylium")
def cli() -> None:
    """Nylium real-time Hyperliquid market data.

    \b
    Commands:
      stream   Stream prices, order books, trades and candles
      account  Stream positions, orders and balance for a wallet
    """
    pass


@cli.command()
@click.option(
    "--asset",
    default=None,
    callback=validate_asset,
    help="Asset symbol (e.g., BTC). Default: prices for all assets",
)
@click.option("--orderbook", is_flag=True, help="Also stream the asset's order book")
@click.option("--trades", is_flag=True, help="Also stream the asset's trades")
@click.option(
    "--interval",
    default=None,
    callback=validate_interval,
    help=f"Also stream candles at this interval. Valid: {', '.join(VALID_INTERVALS)}",
)
@common_options
def stream(
    asset: Optional[str],
    orderbook: bool,
    trades: bool,
    interval: Optional[str],
    network: Optional[str],
    url: Optional[str],
    env_file: Optional[str],
    duration: Optional[float],
    log_level: str,
    json_logs: bool,
) -> None:
    """Stream market data until interrupted.

    \b
    Example:
      nylium stream --asset BTC --orderbook --trades --interval 1m
    """
    if (orderbook or trades or interval) and asset is None:
        raise click.UsageError("--orderbook, --trades and --interval require --asset")

    setup_logging(getattr(logging, log_level), json_format=json_logs)
    config = build_config(network, url, env_file, debug=log_level == "DEBUG")
    logger.info("Streaming from %s (%s)", config.server_url, config.network.value)

    execute(run_stream(config, asset, orderbook, trades, interval, duration))


@cli.command()
@click.argument("wallet")
@common_options
def account(
    wallet: str,
    network: Optional[str],
    url: Optional[str],
    env_file: Optional[str],
    duration: Optional[float],
    log_level: str,
    json_logs: bool,
) -> None:
    """Stream positions, open orders and balance for WALLET.

    \b
    Example:
      nylium account 0xabc... --network testnet
    """
    setup_logging(getattr(logging, log_level), json_format=json_logs)
    config = build_config(network, url, env_file, debug=log_level == "DEBUG")
    logger.info("Streaming account %s from %s", wallet, config.server_url)

    execute(run_account(config, wallet, duration))
