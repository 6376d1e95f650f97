"""
Abstract base class for public market data REST clients

Every operation is a single request/response round trip that returns the
exchange's JSON as-is (dict or list). No typed domain models are built here.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any

from core.models.market_data import Granularity, OrderBookLevel

JSON = Any


class BaseExchangeRestAPI(ABC):
    """
    Abstract base class for public (unauthenticated) exchange REST clients

    Implementations:
    - CoinbasePublicClient (providers/coinbase/rest_api.py)

    Example:
        >>> from factory.client_factory import create_exchange_rest_api
        >>>
        >>> async with create_exchange_rest_api("coinbase") as api:
        ...     book = await api.get_product_orderbook("ETH-USD", OrderBookLevel.LEVEL_2)
        ...     server_time = await api.get_time()
    """

    def __init__(self, exchange_name: str):
        """
        Args:
            exchange_name: Exchange identifier used in logs (e.g., "coinbase")
        """
        self.exchange_name = exchange_name

    @abstractmethod
    async def get_json(self, endpoint: str, params: list[tuple[str, str]] | None = None) -> JSON:
        """
        Send a GET to ``endpoint`` (path relative to the API URL) and decode JSON

        Raises:
            httpx.HTTPStatusError: On non-2xx responses
            httpx.TransportError: On network failures and timeouts
            ValueError: On malformed JSON
        """

    @abstractmethod
    async def get_products(self) -> JSON:
        """List available markets"""

    @abstractmethod
    async def get_product(self, product_id: str) -> JSON:
        """Single market details"""

    @abstractmethod
    async def get_product_orderbook(self, product_id: str, level: OrderBookLevel) -> JSON:
        """Order book snapshot at the requested depth"""

    @abstractmethod
    async def get_product_ticker(self, product_id: str) -> JSON:
        """Last trade, best bid/ask and 24h volume"""

    @abstractmethod
    async def get_product_trades(self, product_id: str, after: int | None = None) -> JSON:
        """Latest trades for a market"""

    @abstractmethod
    async def get_product_historic_rates(
        self,
        product_id: str,
        start: datetime | None = None,
        end: datetime | None = None,
        granularity: Granularity | None = None,
    ) -> JSON:
        """Candles as rows of [time, low, high, open, close, volume]"""

    @abstractmethod
    async def get_product_24h_stats(self, product_id: str) -> JSON:
        """24h open/high/low/volume stats"""

    @abstractmethod
    async def get_currencies(self) -> JSON:
        """Supported currencies"""

    @abstractmethod
    async def get_time(self) -> JSON:
        """Server time (epoch and ISO)"""

    @abstractmethod
    async def close(self) -> None:
        """Release HTTP resources"""

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()
