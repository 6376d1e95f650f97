"""
Coinbase Pro public REST API client.

Thin async wrapper over the public market data endpoints. Each call waits on
the shared token bucket, sends one GET with httpx and returns the decoded JSON
unchanged.
"""

import logging
import re
from datetime import UTC, datetime

import httpx

from config.settings import get_settings
from core.interfaces.market_data import JSON, BaseExchangeRestAPI
from core.models.market_data import Granularity, OrderBookLevel
from core.utils.rate_limiter import TokenBucketRateLimiter
from factory.client_factory import create_rate_limiter

logger = logging.getLogger(__name__)

# Coinbase rejects candle requests spanning more than this many buckets
MAX_CANDLES_PER_REQUEST = 300

Params = list[tuple[str, str]]

# BASE-QUOTE market ids, e.g. ETH-USD or eth-usd
PRODUCT_ID_PATTERN = re.compile(r"[A-Za-z0-9]+(-[A-Za-z0-9]+)*")


def to_rfc3339(value: datetime) -> str:
    """Format a datetime as RFC 3339 in UTC (naive values are taken as UTC)"""
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return value.astimezone(UTC).isoformat()


class CoinbasePublicClient(BaseExchangeRestAPI):
    """
    Coinbase Pro public (unauthenticated) REST client.

    Parameters not passed fall back to settings (COINBASE_API_URL,
    REST_API_TIMEOUT_SECONDS, REST_API_RATE_LIMIT, REST_API_BURST_SIZE,
    REST_API_USER_AGENT). ``rate_limit=0`` disables rate limiting.

    Concurrent calls on one instance share its rate limiter and connection
    pool; there is no ordering guarantee between them.

    Example:
        >>> async with CoinbasePublicClient(rate_limit=1, burst_size=1) as client:
        ...     book = await client.get_product_orderbook("eth-usd", OrderBookLevel.LEVEL_1)
    """

    def __init__(
        self,
        api_url: str | None = None,
        request_timeout: float | None = None,
        rate_limit: int | None = None,
        burst_size: int | None = None,
        user_agent: str | None = None,
        http_client: httpx.AsyncClient | None = None,
    ):
        super().__init__(exchange_name="coinbase")
        settings = get_settings()

        self.api_url = (api_url or settings.COINBASE_API_URL).rstrip("/")
        self.request_timeout = (
            request_timeout if request_timeout is not None else settings.REST_API_TIMEOUT_SECONDS
        )
        if self.request_timeout <= 0:
            raise ValueError(f"request_timeout must be > 0, got {self.request_timeout}")

        self.rate_limit = rate_limit if rate_limit is not None else settings.REST_API_RATE_LIMIT
        self.burst_size = burst_size if burst_size is not None else settings.REST_API_BURST_SIZE
        self.rate_limiter: TokenBucketRateLimiter | None = create_rate_limiter(
            self.rate_limit, self.burst_size
        )

        self.user_agent = user_agent or settings.REST_API_USER_AGENT
        self._owns_client = http_client is None
        self.client = http_client or httpx.AsyncClient(
            headers={"User-Agent": self.user_agent},
            timeout=self.request_timeout,
        )

        logger.info(
            f"CoinbasePublicClient initialized (api_url={self.api_url}, "
            f"rate_limit={self.rate_limit}/s, burst={self.burst_size})"
        )

    # ============================================
    # MARKETS
    # ============================================
    async def get_products(self) -> JSON:
        """Get list of available markets to trade"""
        return await self.get_json("/products")

    async def get_product(self, product_id: str) -> JSON:
        """
        Get information about a single market

        Args:
            product_id: Market identifier formatted as BASE-QUOTE, e.g. "ETH-USD"
                (lowercase or uppercase)
        """
        return await self.get_json(self._product_path(product_id))

    async def get_product_orderbook(
        self, product_id: str, level: OrderBookLevel | int = OrderBookLevel.LEVEL_1
    ) -> JSON:
        """
        Get up to a full (level 3) order book for a single market

        Args:
            product_id: Market identifier, e.g. "ETH-USD"
            level: 1 = best bid and ask, 2 = top 50 aggregated levels,
                3 = full book, not aggregated

        Raises:
            ValueError: If level is not 1, 2 or 3
        """
        level = OrderBookLevel(level)
        return await self.get_json(
            self._product_path(product_id, "book"), [level.as_param()]
        )

    async def get_product_ticker(self, product_id: str) -> JSON:
        """Snapshot of the last trade, best bid/ask and 24h volume"""
        return await self.get_json(self._product_path(product_id, "ticker"))

    async def get_product_trades(self, product_id: str, after: int | None = None) -> JSON:
        """
        Get a market's latest trades

        Args:
            product_id: Market identifier, e.g. "ETH-USD"
            after: Optional trade sequence cursor; trades with a lower
                sequence are excluded. Sent to Coinbase as ``after + 1``.
        """
        params: Params | None = None
        if after is not None:
            params = [("after", str(int(after) + 1))]
        return await self.get_json(self._product_path(product_id, "trades"), params)

    async def get_product_historic_rates(
        self,
        product_id: str,
        start: datetime | None = None,
        end: datetime | None = None,
        granularity: Granularity | int | None = None,
    ) -> JSON:
        """
        Get a market's historic rates (candles)

        Candle schema is [timestamp, low, high, open, close, volume].

        With no start/end/granularity Coinbase returns 300 one-minute candles.
        Periods without trades have no candle. Coinbase rejects requests for
        more than 300 candles of any size.

        Args:
            product_id: Market identifier, e.g. "ETH-USD"
            start: Optional start time (naive values are taken as UTC)
            end: Optional end time
            granularity: Optional candle size in seconds

        Raises:
            ValueError: If start is after end or granularity is unsupported
        """
        path = self._product_path(product_id, "candles")

        if granularity is not None:
            granularity = Granularity.from_seconds(granularity)

        if start is not None and end is not None:
            start_s, end_s = to_rfc3339(start), to_rfc3339(end)
            span = (datetime.fromisoformat(end_s) - datetime.fromisoformat(start_s)).total_seconds()
            if span < 0:
                raise ValueError(f"start ({start_s}) must not be after end ({end_s})")
            if granularity is not None and span / granularity.value > MAX_CANDLES_PER_REQUEST:
                logger.warning(
                    f"Candle request for {product_id} spans {int(span // granularity.value)} "
                    f"buckets; Coinbase rejects more than {MAX_CANDLES_PER_REQUEST}"
                )

        params: Params = []
        if start is not None:
            params.append(("start", to_rfc3339(start)))
        if end is not None:
            params.append(("end", to_rfc3339(end)))
        if granularity is not None:
            params.append(granularity.as_param())

        return await self.get_json(path, params or None)

    async def get_product_24h_stats(self, product_id: str) -> JSON:
        """Get a market's 24h stats"""
        return await self.get_json(self._product_path(product_id, "stats"))

    # ============================================
    # REFERENCE DATA
    # ============================================
    async def get_currencies(self) -> JSON:
        """Get currencies supported by Coinbase"""
        return await self.get_json("/currencies")

    async def get_time(self) -> JSON:
        """Get Coinbase's server time in both epoch and ISO format"""
        return await self.get_json("/time")

    # ============================================
    # TRANSPORT
    # ============================================
    async def get_json(self, endpoint: str, params: Params | None = None) -> JSON:
        """
        Send a GET request and decode the JSON body

        Args:
            endpoint: Path relative to the API URL, e.g. "/products/ETH-USD/book"
            params: Optional query parameters as (name, value) tuples

        Raises:
            httpx.HTTPStatusError: On non-2xx responses
            httpx.TransportError: On network failures and timeouts
            ValueError: On malformed JSON
        """
        url = self.api_url + endpoint

        if self.rate_limiter is not None:
            await self.rate_limiter.acquire()

        logger.debug(f"GET {url} params={params}")

        try:
            response = await self.client.get(
                url,
                params=params,
                headers={"User-Agent": self.user_agent},
                timeout=self.request_timeout,
            )
            response.raise_for_status()
            return response.json()

        except httpx.HTTPStatusError as e:
            logger.error(
                f"Coinbase {endpoint} returned HTTP {e.response.status_code}: "
                f"{e.response.text[:200]}"
            )
            raise
        except httpx.HTTPError as e:
            logger.error(f"Failed request to Coinbase {endpoint}: {e!r}")
            raise
        except ValueError as e:
            logger.error(f"Malformed JSON from Coinbase {endpoint}: {e}")
            raise

    @staticmethod
    def _product_path(product_id: str, resource: str | None = None) -> str:
        if not isinstance(product_id, str) or not product_id.strip():
            raise ValueError("product_id must be a non-empty string like 'ETH-USD'")
        if not PRODUCT_ID_PATTERN.fullmatch(product_id.strip()):
            raise ValueError(f"Invalid product_id: {product_id!r}")
        path = f"/products/{product_id.strip()}"
        return f"{path}/{resource}" if resource else path

    async def close(self) -> None:
        """Close the owned httpx client (an injected client is left open)"""
        if self._owns_client:
            await self.client.aclose()
        logger.info("CoinbasePublicClient closed")
