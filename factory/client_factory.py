"""
Client factory - Create exchange REST clients and rate limiters from configuration
"""

import logging

from core.interfaces.market_data import BaseExchangeRestAPI
from core.utils.rate_limiter import TokenBucketRateLimiter

logger = logging.getLogger(__name__)

COINBASE_ALIASES = {"coinbase", "coinbasepro", "coinbase_pro", "coinbase-pro"}


def create_rate_limiter(rate_limit: int, burst_size: int = 0) -> TokenBucketRateLimiter | None:
    """
    Create the token bucket shared by one client's requests

    Args:
        rate_limit: Requests per second. 0 disables rate limiting.
        burst_size: Requests that may be sent back-to-back. 0 means equal to rate_limit.

    Returns:
        TokenBucketRateLimiter, or None when rate limiting is disabled

    Raises:
        ValueError: If rate_limit or burst_size is negative

    Examples:
        >>> create_rate_limiter(3, 6)
        TokenBucketRateLimiter(rate_per_second=3.0, capacity=6.0)
        >>> create_rate_limiter(0, 6) is None
        True
    """
    if rate_limit < 0:
        raise ValueError(f"rate_limit must be >= 0, got {rate_limit}")
    if burst_size < 0:
        raise ValueError(f"burst_size must be >= 0, got {burst_size}")

    if rate_limit == 0:
        logger.info("Rate limiting disabled")
        return None

    return TokenBucketRateLimiter(rate_per_second=rate_limit, burst_size=burst_size)


def create_exchange_rest_api(exchange_name: str, **overrides) -> BaseExchangeRestAPI:
    """
    Factory method for creating public exchange REST API clients.

    Args:
        exchange_name: Exchange identifier ("coinbase", also "coinbasepro")
        **overrides: Constructor keywords that take precedence over settings
            (api_url, request_timeout, rate_limit, burst_size, user_agent, http_client)

    Returns:
        BaseExchangeRestAPI implementation for the specified exchange

    Examples:
        >>> api = create_exchange_rest_api("coinbase", rate_limit=1, burst_size=1)
        >>> server_time = await api.get_time()
        >>> await api.close()

    Raises:
        ValueError: If exchange_name is not supported
    """
    exchange_lower = exchange_name.lower()

    if exchange_lower in COINBASE_ALIASES:
        from providers.coinbase.rest_api import CoinbasePublicClient

        logger.info("✓ Creating CoinbasePublicClient")
        return CoinbasePublicClient(**overrides)

    else:
        raise ValueError(f"Unknown exchange: {exchange_name}. Supported: coinbase")
