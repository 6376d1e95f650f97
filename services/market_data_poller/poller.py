"""
Market Data Poller - periodically poll Coinbase Pro public REST endpoints

Pattern:
- One shared client per process, so every job goes through one rate limiter
- Each cycle runs all enabled jobs concurrently (asyncio.gather)
- A failed job is logged and counted, the others still complete
- Successful payloads are appended to JSONL snapshots, untouched, from a worker thread
"""

import asyncio
import logging
from datetime import UTC, datetime

from config.loader import PollJobConfig, get_enabled_jobs
from config.settings import get_settings
from core.interfaces.market_data import JSON, BaseExchangeRestAPI
from core.models.market_data import PollResult
from factory.client_factory import create_exchange_rest_api
from services.market_data_poller.persistence import SnapshotWriter

logger = logging.getLogger(__name__)


async def dispatch(api: BaseExchangeRestAPI, job: PollJobConfig) -> JSON:
    """
    Call the client operation that matches a job's endpoint

    Raises:
        ValueError: If the endpoint is unknown
    """
    endpoint = job.endpoint

    if endpoint == "products":
        return await api.get_products()
    elif endpoint == "product":
        return await api.get_product(job.product_id)
    elif endpoint == "orderbook":
        return await api.get_product_orderbook(job.product_id, job.level)
    elif endpoint == "ticker":
        return await api.get_product_ticker(job.product_id)
    elif endpoint == "trades":
        return await api.get_product_trades(job.product_id)
    elif endpoint == "candles":
        return await api.get_product_historic_rates(job.product_id, granularity=job.granularity)
    elif endpoint == "stats":
        return await api.get_product_24h_stats(job.product_id)
    elif endpoint == "currencies":
        return await api.get_currencies()
    elif endpoint == "time":
        return await api.get_time()

    raise ValueError(f"Unsupported endpoint: {endpoint}")


class MarketDataPoller:
    """
    Poll a fixed set of public endpoints on an interval.

    Args:
        api: Shared REST client (default: coinbase client from settings)
        jobs: Jobs to poll (default: enabled jobs from polling.yaml)
        writer: Snapshot writer (default: POLL_OUTPUT_DIR)
        interval_seconds: Seconds between cycle starts (default: polling.yaml)
    """

    def __init__(
        self,
        api: BaseExchangeRestAPI | None = None,
        jobs: list[PollJobConfig] | None = None,
        writer: SnapshotWriter | None = None,
        interval_seconds: float | None = None,
    ):
        self.settings = get_settings()
        self.api = api or create_exchange_rest_api("coinbase")
        self.jobs = jobs if jobs is not None else get_enabled_jobs()
        self.writer = writer or SnapshotWriter(self.settings.POLL_OUTPUT_DIR)
        self.interval_seconds = (
            interval_seconds if interval_seconds is not None else self.settings.POLL_INTERVAL_SECONDS
        )
        self.running = False
        self._stop_event = asyncio.Event()

    async def poll_job(self, job: PollJobConfig) -> PollResult:
        """Poll one job and persist its payload"""
        payload = await dispatch(self.api, job)
        result = PollResult(
            job=job.name,
            endpoint=job.endpoint,
            product_id=job.product_id,
            payload=payload,
        )
        await asyncio.to_thread(self.writer.write, result)
        return result

    async def _poll_safe(self, job: PollJobConfig) -> bool:
        try:
            await self.poll_job(job)
            logger.info(f"✓ Polled {job.name} ({job.endpoint})")
            return True
        except Exception as e:
            logger.error(f"Poll failed {job.name} ({job.endpoint}): {e}")
            return False

    async def run_cycle(self) -> tuple[int, int]:
        """
        Poll every job once, concurrently

        Returns:
            (successes, failures)
        """
        results = await asyncio.gather(*[self._poll_safe(job) for job in self.jobs])

        successes = sum(1 for ok in results if ok)
        failures = len(results) - successes
        logger.info(f"Poll cycle complete: {successes} successful, {failures} failed")
        return successes, failures

    async def start(self, once: bool = False):
        """Run cycles until stop() (or a single cycle when once=True)"""
        logger.info("=" * 60)
        logger.info("Market Data Poller started")
        logger.info("=" * 60)
        logger.info(f"  Poll interval: {self.interval_seconds}s")
        logger.info(f"  Jobs: {', '.join(job.name for job in self.jobs)}")
        logger.info(f"  Snapshots: {self.writer.root_dir}")
        logger.info("=" * 60)

        self.running = True
        self._stop_event.clear()

        try:
            while self.running:
                start_time = datetime.now(UTC)

                try:
                    await self.run_cycle()
                except Exception as e:
                    logger.error(f"Error in poll cycle: {e}", exc_info=True)

                if once:
                    break

                elapsed = (datetime.now(UTC) - start_time).total_seconds()
                sleep_time = max(0.0, self.interval_seconds - elapsed)
                if sleep_time > 0:
                    logger.debug(f"Sleeping {sleep_time:.1f}s until next poll...")
                    try:
                        await asyncio.wait_for(self._stop_event.wait(), timeout=sleep_time)
                    except TimeoutError:
                        pass

        finally:
            await self.stop()

    def request_stop(self) -> None:
        """Ask the loop to finish after the current cycle"""
        self.running = False
        self._stop_event.set()

    async def stop(self):
        """Graceful shutdown"""
        logger.info("Stopping Market Data Poller...")
        self.request_stop()
        await self.api.close()
        logger.info("Market Data Poller stopped")
