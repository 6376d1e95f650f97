"""Models module - request parameter enums and Pydantic models"""

from .market_data import Granularity, OrderBookLevel, PollResult

__all__ = [
    "Granularity",
    "OrderBookLevel",
    "PollResult",
]
