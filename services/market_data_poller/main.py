"""
Market Data Poller - Entry Point

Commands:
    python -m services.market_data_poller.main poll [--once] [--config PATH]
    python -m services.market_data_poller.main fetch orderbook --product ETH-USD --level 2
    python -m services.market_data_poller.main fetch candles --product eth-usd --granularity 300

Exit codes: 0 ok, 1 HTTP/network/JSON error, 2 usage error.
"""

import argparse
import asyncio
import json
import logging
import os
import signal
import sys
from datetime import datetime
from logging.handlers import RotatingFileHandler
from typing import get_args

import httpx
from pydantic import ValidationError

from config.loader import Endpoint, PollJobConfig, get_enabled_jobs
from config.settings import get_settings
from core.models.market_data import Granularity, OrderBookLevel
from factory.client_factory import create_exchange_rest_api
from services.market_data_poller.poller import MarketDataPoller, dispatch

logger = logging.getLogger(__name__)

ENDPOINTS = list(get_args(Endpoint))

_fmt = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def configure_logging(level: str = "INFO", log_dir: str | None = None) -> None:
    """stdout for everything at ``level``, rotating file for errors"""
    handlers: list[logging.Handler] = []

    console = logging.StreamHandler(sys.stdout)
    console.setLevel(level)
    console.setFormatter(logging.Formatter(_fmt))
    handlers.append(console)

    if log_dir:
        os.makedirs(log_dir, exist_ok=True)
        errors = RotatingFileHandler(
            os.path.join(log_dir, "market_data_poller_errors.log"),
            maxBytes=5 * 1024 * 1024,  # 5MB
            backupCount=3,
        )
        errors.setLevel(logging.ERROR)
        errors.setFormatter(logging.Formatter(_fmt))
        handlers.append(errors)

    logging.basicConfig(level=level, handlers=handlers, force=True)


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="Coinbase Pro public REST poller")
    p.add_argument("--debug", action="store_true", help="Verbose logging")
    sub = p.add_subparsers(dest="command", required=True)

    poll = sub.add_parser("poll", help="Poll configured jobs on an interval")
    poll.add_argument("--config", type=str, default=None, help="Path to polling.yaml")
    poll.add_argument("--once", action="store_true", help="Run a single cycle and exit")
    poll.add_argument("--interval", type=float, default=None, help="Override interval (seconds)")

    fetch = sub.add_parser("fetch", help="Fetch one endpoint and print its JSON")
    fetch.add_argument("endpoint", choices=ENDPOINTS)
    fetch.add_argument("--product", type=str, default=None, help="Market id, e.g. ETH-USD")
    fetch.add_argument("--level", type=int, default=OrderBookLevel.LEVEL_2.value, choices=[1, 2, 3])
    fetch.add_argument(
        "--granularity", type=int, default=None, choices=[g.value for g in Granularity]
    )
    fetch.add_argument("--start", type=datetime.fromisoformat, default=None, help="ISO datetime")
    fetch.add_argument("--end", type=datetime.fromisoformat, default=None, help="ISO datetime")
    fetch.add_argument("--after", type=int, default=None, help="Trades sequence cursor")
    return p


async def run_fetch(args: argparse.Namespace) -> int:
    job = PollJobConfig(
        name="cli",
        endpoint=args.endpoint,
        product_id=args.product,
        level=args.level,
        granularity=args.granularity,
    )

    async with create_exchange_rest_api("coinbase") as api:
        if job.endpoint == "candles" and (args.start or args.end):
            payload = await api.get_product_historic_rates(
                job.product_id, start=args.start, end=args.end, granularity=job.granularity
            )
        elif job.endpoint == "trades" and args.after is not None:
            payload = await api.get_product_trades(job.product_id, after=args.after)
        else:
            payload = await dispatch(api, job)

    print(json.dumps(payload, indent=2))
    return 0


async def run_poll(args: argparse.Namespace) -> int:
    jobs = get_enabled_jobs(args.config) if args.config else get_enabled_jobs()
    service = MarketDataPoller(jobs=jobs, interval_seconds=args.interval)

    # Handlers run inside the loop so request_stop() wakes the interval wait
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, signal_handler(service), sig)

    await service.start(once=args.once)
    return 0


def signal_handler(service: MarketDataPoller):
    """Handle SIGINT/SIGTERM"""

    def handler(signum):
        logger.info(f"Received signal {signum}")
        service.request_stop()

    return handler


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    settings = get_settings()
    configure_logging("DEBUG" if args.debug else settings.LOG_LEVEL, settings.LOG_DIR)

    try:
        if args.command == "fetch":
            return asyncio.run(run_fetch(args))
        return asyncio.run(run_poll(args))

    except (httpx.HTTPError, json.JSONDecodeError) as e:
        print(f"[ERROR] {e}", file=sys.stderr)
        if args.debug:
            raise
        return 1
    except (ValidationError, ValueError, FileNotFoundError) as e:
        print(f"[ERROR] {e}", file=sys.stderr)
        if args.debug:
            raise
        return 2


if __name__ == "__main__":
    raise SystemExit(main())
