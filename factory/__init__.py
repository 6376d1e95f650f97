"""Factory package - Build configured exchange clients"""

from .client_factory import create_exchange_rest_api, create_rate_limiter

__all__ = [
    "create_exchange_rest_api",
    "create_rate_limiter",
]
