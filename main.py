"""
Poker Cashier - Console Runner

Reads chat-like lines from stdin and feeds them through the Croupier:

    alice /start 20 200
    bob tip 0.01
    alice /finish
    bob /cashout 25

CLI Flags Reference:
| Flag | Default | Description |
|------|---------|-------------|
| `--channel` | `console` | Channel id used for every line |
| `--bot-address` | `CASHIER_BOT_ADDRESS` | Receiver address for console tips |
| `--rate` | `None` | Static ETH/USD rate (sets ETH_USD_RATE, disables the live feed) |
| `--log-level` | `LOG_LEVEL` | DEBUG, INFO, WARNING, ERROR |
| `--log-format` | `LOG_FORMAT` | console or json |
| `--metrics-port` | `METRICS_PORT` | Prometheus port (0 = disabled) |
"""

import argparse
import asyncio
import logging
import os
import sys
import uuid
from typing import Any, Dict, Optional

from config import cashier as cashier_config
from config import system as system_config
from core.exceptions import CashierError
from core.interfaces import BotHandler, TipReceipt
from core.ledger import SessionLedger, SessionStore
from core.money import to_scaled_int
from core.observability import MetricsServer, configure_logging
from core.observability.metrics import cashier_info
from croupier.croupier import Croupier
from exchanges import CoinGeckoPriceFeed, ExchangeRateResolver

ETH_DECIMALS = 18

logger = logging.getLogger("PokerCashier")


class ConsoleBotHandler(BotHandler):
    """Prints replies to stdout and fabricates transfer hashes."""

    async def send_message(self, channel_id: str, text: str) -> None:
        print(f"\n[{channel_id}] {text}\n", flush=True)

    async def send_tip(self, user_id: str, amount: int, currency: str, channel_id: str, message_id: str) -> TipReceipt:
        tx_hash = "0x" + uuid.uuid4().hex + uuid.uuid4().hex
        print(f"[{channel_id}] ↪ transfer {amount} wei of {currency} to {user_id} (tx: {tx_hash})", flush=True)
        return TipReceipt(tx_hash=tx_hash)


def parse_args(argv=None):
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(description="Poker Cashier console runner")

    parser.add_argument("--channel", type=str, default="console", help="Channel id (default: console)")
    parser.add_argument(
        "--bot-address",
        type=str,
        default=cashier_config.BOT_ADDRESS or "0xcashier",
        help="Bot receiver address for console tips (default: CASHIER_BOT_ADDRESS)",
    )
    parser.add_argument(
        "--rate",
        type=str,
        default=None,
        help="Static ETH/USD rate; disables the live price feed",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default=system_config.LOG_LEVEL,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: LOG_LEVEL or INFO)",
    )
    parser.add_argument(
        "--log-format",
        type=str,
        default=system_config.LOG_FORMAT,
        choices=["console", "json"],
        help="Log output format (default: LOG_FORMAT or console)",
    )
    parser.add_argument(
        "--metrics-port",
        type=int,
        default=system_config.METRICS_PORT,
        help="Prometheus metrics port, 0 disables (default: METRICS_PORT)",
    )

    return parser.parse_args(argv)


def build_payload(line: str, channel_id: str, bot_address: str, counter: int) -> Optional[Dict[str, Any]]:
    """
    Turn ``<user> /<command> [args]`` or ``<user> tip <eth>`` into a transport payload.

    Returns:
        Payload dict, or None for blank lines

    Raises:
        CashierError: If the line cannot be understood
    """
    parts = line.split()
    if not parts:
        return None

    if len(parts) < 2:
        raise CashierError("Expected `<user> /<command> [args]` or `<user> tip <eth>`.")

    user_id, action, rest = parts[0], parts[1], parts[2:]
    event_id = f"console-{counter}"

    if action.lower() == "tip":
        if len(rest) != 1:
            raise CashierError("Usage: `<user> tip <eth>` (example: `bob tip 0.01`).")
        return {
            "type": "tip",
            "user_id": user_id,
            "channel_id": channel_id,
            "event_id": event_id,
            "message_id": event_id,
            "sender_address": user_id,
            "receiver_address": bot_address,
            "amount": to_scaled_int(rest[0], ETH_DECIMALS),
            "currency": cashier_config.NATIVE_CURRENCY,
        }

    if not action.startswith("/"):
        raise CashierError(f"Unknown action: {action}")

    return {
        "type": "slash_command",
        "command": action,
        "args": rest,
        "user_id": user_id,
        "channel_id": channel_id,
        "event_id": event_id,
    }


async def read_lines(croupier: Croupier, channel_id: str, bot_address: str):
    loop = asyncio.get_running_loop()
    counter = 0

    while True:
        line = await loop.run_in_executor(None, sys.stdin.readline)
        if not line:
            break

        counter += 1
        try:
            payload = build_payload(line, channel_id, bot_address, counter)
        except CashierError as e:
            print(e.message, flush=True)
            continue

        if payload is not None:
            await croupier.handle_payload(payload)


async def main(argv=None):
    """Main entry point for the console runner."""
    args = parse_args(argv)

    configure_logging(log_level=args.log_level, log_format=args.log_format, log_file=system_config.LOG_FILE or None)

    price_feed = None
    if args.rate is not None:
        os.environ[cashier_config.STATIC_RATE_ENV_VAR] = args.rate
        logger.info(f"📌 Static rate {args.rate} USD/ETH, live feed disabled")
    else:
        price_feed = CoinGeckoPriceFeed(
            url=cashier_config.PRICE_FEED_URL,
            timeout=cashier_config.PRICE_FEED_TIMEOUT,
        )

    metrics_server = None
    if args.metrics_port:
        metrics_server = MetricsServer(port=args.metrics_port, host=system_config.METRICS_HOST)
        try:
            await metrics_server.start()
            cashier_info.info({"version": "1.0.0", "channel": args.channel})
        except OSError as e:
            logger.warning(f"⚠️ Failed to start metrics server: {e}")
            metrics_server = None

    bot_handler = ConsoleBotHandler()
    ledger = SessionLedger(
        store=SessionStore(),
        rate_resolver=ExchangeRateResolver(price_feed=price_feed),
        payout=bot_handler,
    )
    croupier = Croupier(ledger, bot_handler, bot_address=args.bot_address)

    logger.info(f"🚀 Poker Cashier ready | Channel: {args.channel} | Bot: {args.bot_address}")

    try:
        await read_lines(croupier, args.channel, args.bot_address)
    finally:
        if price_feed is not None:
            await price_feed.close()
        if metrics_server is not None:
            await metrics_server.stop()
        logger.info("🏁 Goodbye.")


def run():
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    run()
