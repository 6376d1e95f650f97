"""Interfaces module - Abstract base classes for exchange clients"""

from .market_data import BaseExchangeRestAPI

__all__ = [
    "BaseExchangeRestAPI",
]
