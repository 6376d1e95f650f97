"""
Integration tests for Coinbase Pro public REST network calls

Tests actual network calls to the public API.
These tests require internet connection and may be flaky.

Use @pytest.mark.external to skip in CI:
pytest -m "not external"
"""

from datetime import UTC, datetime, timedelta

import pytest

from core.models.market_data import Granularity, OrderBookLevel
from factory.client_factory import create_exchange_rest_api


@pytest.mark.integration
@pytest.mark.external  # 🌐 Requires internet connection
async def test_coinbase_time_and_products():
    """Verify server time and product listing come back as raw JSON (EXTERNAL DEPENDENCY)"""
    async with create_exchange_rest_api("coinbase") as api:
        server_time = await api.get_time()
        products = await api.get_products()

    assert "iso" in server_time
    assert "epoch" in server_time
    assert isinstance(products, list)
    assert any(p["id"] == "BTC-USD" for p in products)

    print(f"\n✓ Coinbase listed {len(products)} products")


@pytest.mark.integration
@pytest.mark.external  # 🌐 Requires internet connection
async def test_coinbase_orderbook_levels():
    """Verify level 1 and level 2 books (EXTERNAL DEPENDENCY)"""
    async with create_exchange_rest_api("coinbase") as api:
        top = await api.get_product_orderbook("BTC-USD", OrderBookLevel.LEVEL_1)
        aggregated = await api.get_product_orderbook("BTC-USD", OrderBookLevel.LEVEL_2)

    assert len(top["bids"]) <= 1
    assert len(aggregated["bids"]) >= len(top["bids"])
    assert "sequence" in aggregated


@pytest.mark.integration
@pytest.mark.external  # 🌐 Requires internet connection
async def test_coinbase_candles_in_range():
    """Verify historic rates for a short window (EXTERNAL DEPENDENCY)"""
    end = datetime.now(UTC).replace(second=0, microsecond=0)
    start = end - timedelta(minutes=30)

    async with create_exchange_rest_api("coinbase") as api:
        candles = await api.get_product_historic_rates(
            "BTC-USD", start=start, end=end, granularity=Granularity.MINUTE_1
        )

    assert isinstance(candles, list)
    for time, low, high, open_, close, volume in candles:
        assert high >= low
        assert low <= open_ <= high
        assert low <= close <= high

    print(f"\n✓ Coinbase returned {len(candles)} candles")


@pytest.mark.integration
@pytest.mark.external  # 🌐 Requires internet connection
async def test_coinbase_unknown_product_raises():
    """Verify non-2xx responses surface as HTTPStatusError (EXTERNAL DEPENDENCY)"""
    import httpx

    async with create_exchange_rest_api("coinbase") as api:
        with pytest.raises(httpx.HTTPStatusError):
            await api.get_product_ticker("NOT-A-MARKET")
