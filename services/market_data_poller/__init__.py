"""
Market Data Poller - periodic REST polling of Coinbase Pro public endpoints

1. Loads enabled jobs from config/providers/polling.yaml
2. Polls them concurrently through one rate-limited client
3. Appends raw JSON payloads to JSONL snapshots
"""

from services.market_data_poller.persistence import SnapshotWriter
from services.market_data_poller.poller import MarketDataPoller, dispatch

__all__ = ["MarketDataPoller", "SnapshotWriter", "dispatch"]
