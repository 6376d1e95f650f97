"""Utilities - YAML config helpers and request rate limiting"""

from .config import load_yaml, load_yaml_safe
from .rate_limiter import TokenBucketRateLimiter

__all__ = ["load_yaml", "load_yaml_safe", "TokenBucketRateLimiter"]
