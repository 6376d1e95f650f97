"""
Snapshot persistence - append polled payloads to JSON Lines files

One file per job: <root>/<job>.jsonl, one PollResult per line.
"""

import json
import logging
from pathlib import Path

from core.models.market_data import PollResult

logger = logging.getLogger(__name__)


class SnapshotWriter:
    """Append-only JSONL writer for poll results"""

    def __init__(self, root_dir: str | Path):
        self.root_dir = Path(root_dir)

    def path_for(self, job: str) -> Path:
        return self.root_dir / f"{job}.jsonl"

    def write(self, result: PollResult) -> Path:
        """
        Append one result and return the file it went to

        Raises:
            OSError: If the snapshot directory or file cannot be written
        """
        self.root_dir.mkdir(parents=True, exist_ok=True)
        out = self.path_for(result.job)
        with open(out, "a", encoding="utf-8") as f:
            f.write(json.dumps(result.to_dict(), separators=(",", ":")) + "\n")
        logger.debug(f"Wrote snapshot for {result.job} → {out}")
        return out

    def read(self, job: str) -> list[dict]:
        """Read back every stored snapshot for a job (oldest first)"""
        path = self.path_for(job)
        if not path.exists():
            return []
        with open(path, encoding="utf-8") as f:
            return [json.loads(line) for line in f if line.strip()]
