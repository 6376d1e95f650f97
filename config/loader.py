"""
Polling job loader with YAML support and Pydantic validation
"""

import logging
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, field_validator, model_validator

from config.settings import POLLING_CONFIG_PATH
from core.models.market_data import Granularity, OrderBookLevel
from core.utils.config import load_yaml

logger = logging.getLogger(__name__)

Endpoint = Literal[
    "products",
    "product",
    "orderbook",
    "ticker",
    "trades",
    "candles",
    "stats",
    "currencies",
    "time",
]

# Endpoints that address a single market and need a product_id
PRODUCT_ENDPOINTS = {"product", "orderbook", "ticker", "trades", "candles", "stats"}


class PollJobConfig(BaseModel):
    """Single polling job: one endpoint (optionally for one product)"""

    name: str
    endpoint: Endpoint
    product_id: str | None = None
    level: OrderBookLevel = OrderBookLevel.LEVEL_2
    granularity: Granularity | None = None
    enabled: bool = True

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, v):
        if not v.strip():
            raise ValueError("Job name cannot be empty")
        return v

    @model_validator(mode="after")
    def product_required(self):
        if self.endpoint in PRODUCT_ENDPOINTS and not self.product_id:
            raise ValueError(f"Endpoint '{self.endpoint}' requires a product_id")
        return self


class PollingSettings(BaseModel):
    """Cycle-level polling settings"""

    interval_seconds: int = 60


class PollingConfig(BaseModel):
    """Whole polling.yaml document"""

    settings: PollingSettings = PollingSettings()
    jobs: list[PollJobConfig]

    @field_validator("jobs")
    @classmethod
    def unique_names(cls, v):
        names = [job.name for job in v]
        duplicates = {n for n in names if names.count(n) > 1}
        if duplicates:
            raise ValueError(f"Duplicate job names: {sorted(duplicates)}")
        return v


def load_polling_config(config_path: str | Path = POLLING_CONFIG_PATH) -> PollingConfig:
    """
    Load and validate polling configuration from YAML

    Args:
        config_path: Path to polling.yaml file

    Returns:
        PollingConfig: Validated polling configuration

    Raises:
        FileNotFoundError: If config file doesn't exist
        ValidationError: If config is invalid

    Example:
        >>> config = load_polling_config()
        >>> [job.name for job in config.jobs]
        ['server_time', 'eth_usd_book', ...]
    """
    data = load_yaml(config_path)

    try:
        config = PollingConfig(**data)
        logger.info(f"✓ Loaded {len(config.jobs)} polling jobs")
        return config

    except Exception as e:
        logger.error(f"Failed to load polling config: {e}")
        raise


def get_enabled_jobs(config_path: str | Path = POLLING_CONFIG_PATH) -> list[PollJobConfig]:
    """
    Get only enabled polling jobs

    Raises:
        ValueError: If no job is enabled
    """
    config = load_polling_config(config_path)
    enabled = [job for job in config.jobs if job.enabled]

    if not enabled:
        raise ValueError("No polling jobs are enabled in configuration")

    logger.info(f"✓ Enabled polling jobs: {', '.join(job.name for job in enabled)}")
    return enabled


__all__ = [
    "Endpoint",
    "PRODUCT_ENDPOINTS",
    "PollJobConfig",
    "PollingConfig",
    "PollingSettings",
    "load_polling_config",
    "get_enabled_jobs",
]
