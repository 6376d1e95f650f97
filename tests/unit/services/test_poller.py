"""
Unit tests for MarketDataPoller and endpoint dispatch

The REST client is an AsyncMock; snapshots go to tmp_path.
"""

import threading
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest

from config.loader import PollJobConfig
from core.models.market_data import Granularity, OrderBookLevel
from services.market_data_poller.persistence import SnapshotWriter
from services.market_data_poller.poller import MarketDataPoller, dispatch


@pytest.fixture
def mock_api():
    """Mock public REST client"""
    api = MagicMock()
    api.get_products = AsyncMock(return_value=[{"id": "ETH-USD"}])
    api.get_product = AsyncMock(return_value={"id": "ETH-USD"})
    api.get_product_orderbook = AsyncMock(return_value={"bids": [], "asks": []})
    api.get_product_ticker = AsyncMock(return_value={"price": "2300.10"})
    api.get_product_trades = AsyncMock(return_value=[])
    api.get_product_historic_rates = AsyncMock(return_value=[[1, 2, 3, 4, 5, 6]])
    api.get_product_24h_stats = AsyncMock(return_value={"volume": "10"})
    api.get_currencies = AsyncMock(return_value=[{"id": "BTC"}])
    api.get_time = AsyncMock(return_value={"epoch": 1704067200.0})
    api.close = AsyncMock()
    return api


def job(name, endpoint, **kwargs):
    return PollJobConfig(name=name, endpoint=endpoint, **kwargs)


@pytest.mark.unit
class TestDispatch:
    """Endpoint name → client operation"""

    @pytest.mark.parametrize(
        "endpoint,method",
        [
            ("products", "get_products"),
            ("currencies", "get_currencies"),
            ("time", "get_time"),
        ],
    )
    async def test_global_endpoints(self, mock_api, endpoint, method):
        await dispatch(mock_api, job("j", endpoint))

        getattr(mock_api, method).assert_awaited_once_with()

    @pytest.mark.parametrize(
        "endpoint,method",
        [
            ("product", "get_product"),
            ("ticker", "get_product_ticker"),
            ("trades", "get_product_trades"),
            ("stats", "get_product_24h_stats"),
        ],
    )
    async def test_product_endpoints(self, mock_api, endpoint, method):
        await dispatch(mock_api, job("j", endpoint, product_id="BTC-USD"))

        getattr(mock_api, method).assert_awaited_once_with("BTC-USD")

    async def test_orderbook_passes_level(self, mock_api):
        await dispatch(mock_api, job("j", "orderbook", product_id="ETH-USD", level=3))

        mock_api.get_product_orderbook.assert_awaited_once_with("ETH-USD", OrderBookLevel.LEVEL_3)

    async def test_candles_passes_granularity(self, mock_api):
        result = await dispatch(
            mock_api, job("j", "candles", product_id="ETH-USD", granularity=300)
        )

        assert result == [[1, 2, 3, 4, 5, 6]]
        mock_api.get_product_historic_rates.assert_awaited_once_with(
            "ETH-USD", granularity=Granularity.MINUTE_5
        )


@pytest.mark.unit
class TestMarketDataPoller:
    """Polling cycles, persistence and shutdown"""

    async def test_run_cycle_persists_payloads(self, mock_api, tmp_path):
        writer = SnapshotWriter(tmp_path)
        poller = MarketDataPoller(
            api=mock_api,
            jobs=[job("server_time", "time"), job("btc_ticker", "ticker", product_id="BTC-USD")],
            writer=writer,
            interval_seconds=1,
        )

        successes, failures = await poller.run_cycle()

        assert (successes, failures) == (2, 0)
        [snapshot] = writer.read("server_time")
        assert snapshot["endpoint"] == "time"
        assert snapshot["payload"] == {"epoch": 1704067200.0}
        assert writer.read("btc_ticker")[0]["product_id"] == "BTC-USD"

    async def test_failed_job_does_not_stop_others(self, mock_api, tmp_path, caplog):
        request = httpx.Request("GET", "https://api.pro.coinbase.com/products/BAD-USD/stats")
        mock_api.get_product_24h_stats.side_effect = httpx.HTTPStatusError(
            "404 Not Found", request=request, response=httpx.Response(404, request=request)
        )
        writer = SnapshotWriter(tmp_path)
        poller = MarketDataPoller(
            api=mock_api,
            jobs=[job("bad_stats", "stats", product_id="BAD-USD"), job("server_time", "time")],
            writer=writer,
            interval_seconds=1,
        )

        successes, failures = await poller.run_cycle()

        assert (successes, failures) == (1, 1)
        assert writer.read("bad_stats") == []
        assert len(writer.read("server_time")) == 1
        assert "Poll failed bad_stats" in caplog.text

    async def test_start_once_runs_single_cycle_and_closes(self, mock_api, tmp_path):
        poller = MarketDataPoller(
            api=mock_api,
            jobs=[job("server_time", "time")],
            writer=SnapshotWriter(tmp_path),
            interval_seconds=60,
        )

        await poller.start(once=True)

        mock_api.get_time.assert_awaited_once()
        mock_api.close.assert_awaited_once()
        assert poller.running is False

    async def test_request_stop_ends_loop(self, mock_api, tmp_path):
        poller = MarketDataPoller(
            api=mock_api,
            jobs=[job("server_time", "time")],
            writer=SnapshotWriter(tmp_path),
            interval_seconds=0,
        )

        async def stop_after_two(*args, **kwargs):
            if mock_api.get_time.await_count >= 2:
                poller.request_stop()
            return {"epoch": 1.0}

        mock_api.get_time.side_effect = stop_after_two

        await poller.start()

        assert mock_api.get_time.await_count == 2
        assert len(SnapshotWriter(tmp_path).read("server_time")) == 2

    async def test_defaults_from_config(self, mock_api, tmp_path, monkeypatch):
        monkeypatch.setenv("POLL_OUTPUT_DIR", str(tmp_path))

        poller = MarketDataPoller(api=mock_api)

        assert poller.interval_seconds == 60
        assert poller.writer.root_dir == tmp_path
        assert all(j.enabled for j in poller.jobs)

    async def test_snapshot_write_runs_off_event_loop_thread(self, mock_api, tmp_path):
        loop_thread = threading.get_ident()
        writer_threads = []
        writer = SnapshotWriter(tmp_path)
        real_write = writer.write

        def recording_write(result):
            writer_threads.append(threading.get_ident())
            return real_write(result)

        writer.write = recording_write
        poller = MarketDataPoller(
            api=mock_api, jobs=[job("server_time", "time")], writer=writer, interval_seconds=1
        )

        await poller.run_cycle()

        assert len(writer_threads) == 1
        assert writer_threads[0] != loop_thread
        assert len(writer.read("server_time")) == 1
