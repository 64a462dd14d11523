"""
Local persistence for the offline mutation queue (one JSON file)
"""
import json
import logging
import os
from pathlib import Path

from filelock import FileLock

logger = logging.getLogger(__name__)


class JsonFileQueueStore:
    """
    Stores the queue as a JSON list of item dicts.

    A missing file is an empty queue. Writes go to a temp file first and are
    swapped in with os.replace so a crash never leaves half a list on disk.

    Every process that opens the same path shares two lock files next to it:
      <path>.lock        held around each load-modify-save
      <path>.drain.lock  held for the whole of a drain
    """

    def __init__(self, path: str | Path):
        self.path = Path(path)
        self.lock = FileLock(f"{self.path}.lock")
        self.drain_lock = FileLock(f"{self.path}.drain.lock")

    def ensure_directory(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)

    def exists(self) -> bool:
        return self.path.exists()

    def load(self) -> list[dict]:
        if not self.path.exists():
            return []
        with self.path.open("r", encoding="utf-8") as f:
            data = json.load(f)
        if not isinstance(data, list):
            raise ValueError(f"Sync queue file {self.path} does not contain a list")
        return data

    def save(self, items: list[dict]) -> None:
        self.ensure_directory()
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        with tmp_path.open("w", encoding="utf-8") as f:
            json.dump(items, f, ensure_ascii=False, default=str)
        os.replace(tmp_path, self.path)

    def clear(self) -> None:
        """Remove the file entirely (queue fully synced)"""
        if self.path.exists():
            self.path.unlink()
            logger.info("Sync queue %s cleared", self.path)
