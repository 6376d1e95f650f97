"""
Market data request/response models

- OrderBookLevel: order book depth accepted by the book endpoint
- Granularity: candle sizes accepted by the candles endpoint
- PollResult: one polled JSON payload, as persisted by the poller

Payloads themselves stay untyped JSON (dict / list).
"""

from datetime import UTC, datetime
from enum import IntEnum
from typing import Any

from pydantic import BaseModel, Field


class OrderBookLevel(IntEnum):
    """
    Order book depth

    - LEVEL_1: best bid and best ask
    - LEVEL_2: top 50 bid and ask levels, aggregated
    - LEVEL_3: full order book, not aggregated
    """

    LEVEL_1 = 1
    LEVEL_2 = 2
    LEVEL_3 = 3

    def as_param(self) -> tuple[str, str]:
        """Query parameter tuple, e.g. ("level", "2")"""
        return ("level", str(self.value))


class Granularity(IntEnum):
    """Candle size in seconds"""

    MINUTE_1 = 60
    MINUTE_5 = 300
    MINUTE_15 = 900
    HOUR_1 = 3600
    HOUR_6 = 21600
    HOUR_24 = 86400

    def as_param(self) -> tuple[str, str]:
        """Query parameter tuple, e.g. ("granularity", "60")"""
        return ("granularity", str(self.value))

    @classmethod
    def from_seconds(cls, seconds: int) -> "Granularity":
        """
        Look up a granularity by its size in seconds

        Raises:
            ValueError: If Coinbase does not accept that candle size
        """
        try:
            return cls(int(seconds))
        except ValueError:
            accepted = ", ".join(str(g.value) for g in cls)
            raise ValueError(
                f"Unsupported granularity: {seconds}s. Accepted: {accepted}"
            ) from None


class PollResult(BaseModel):
    """One successful poll of a public endpoint"""

    job: str = Field(description="Polling job name")
    endpoint: str = Field(description="Endpoint name (orderbook, candles, time, ...)")
    product_id: str | None = Field(default=None, description="Market id, BASE-QUOTE")
    fetched_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    payload: Any = Field(description="Decoded JSON exactly as returned by the API")

    def to_dict(self) -> dict:
        """Convert to a JSON-serialisable dict for snapshot files"""
        return {
            "job": self.job,
            "endpoint": self.endpoint,
            "product_id": self.product_id,
            "fetched_at": self.fetched_at.isoformat(),
            "payload": self.payload,
        }
