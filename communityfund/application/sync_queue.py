"""
Offline mutation queue: buffer writes locally, replay them later.

Replay contract (at-least-once):
  - items are replayed in enqueue order, each at most once per drain
  - a failed item stays unsynced at its position and is retried next drain
  - a failure never aborts the rest of the batch
  - once nothing unsynced remains, the store is removed entirely

Only one drain runs at a time per queue file, across threads and processes
(the scheduler and run_sync.py share the file); a drain started while another
is running returns an empty result immediately. Enqueue is allowed during a
drain: the new item is not visited by the running drain and waits for the next.

The server itself never enqueues. enqueue() is the entry point for field
clients that run this package against a local SYNC_QUEUE_PATH while offline;
the scheduler and run_sync.py only drain.
"""
import logging
import threading
from collections.abc import Mapping
from contextlib import contextmanager

from filelock import Timeout

from communityfund.domain.sync import (
    DrainResult,
    SyncQueueItem,
    build_mutation,
    check_against_schema,
)
from communityfund.infrastructure.sync.backend import MutationBackend
from communityfund.infrastructure.sync.store import JsonFileQueueStore

logger = logging.getLogger(__name__)


def schema_from_metadata(metadata) -> dict[str, frozenset[str]]:
    """table name -> column names, from SQLAlchemy MetaData"""
    return {
        name: frozenset(column.name for column in table.columns)
        for name, table in metadata.tables.items()
    }


class OfflineMutationQueue:
    """
    Args:
        store: where the list lives between runs
        backend: replay target
        schema: optional table -> columns map; when given, enqueue rejects
            unknown tables and columns
    """

    def __init__(
        self,
        store: JsonFileQueueStore,
        backend: MutationBackend,
        schema: Mapping[str, frozenset[str]] | None = None,
    ):
        self.store = store
        self.backend = backend
        self.schema = schema
        self._store_lock = threading.Lock()
        self._drain_lock = threading.Lock()

    def enqueue(self, user_id: int, table: str, operation: str, payload: dict) -> SyncQueueItem:
        """
        Append a mutation to the queue.

        Raises:
            SyncMutationError: malformed mutation (nothing is stored)
        """
        mutation = build_mutation(table, operation, payload)
        if self.schema is not None:
            check_against_schema(mutation, self.schema)

        item = SyncQueueItem(user_id=user_id, mutation=mutation)
        with self._locked_store():
            items = self.store.load()
            items.append(item.to_dict())
            self.store.save(items)

        logger.info("Queued %s on %s (item %s)", operation, table, item.id)
        return item

    def pending_count(self) -> int:
        with self._locked_store():
            return sum(1 for raw in self.store.load() if not raw.get("synced"))

    def pending_items(self) -> list[SyncQueueItem]:
        with self._locked_store():
            raw_items = self.store.load()
        return [SyncQueueItem.from_dict(raw) for raw in raw_items if not raw.get("synced")]

    def drain(self) -> DrainResult:
        """
        Replay every unsynced item once, in order.

        Returns:
            DrainResult with success / failed counts and per-item errors
        """
        if not self._drain_lock.acquire(blocking=False):
            logger.info("Sync drain already running, skipped")
            return DrainResult()

        try:
            self.store.ensure_directory()
            try:
                self.store.drain_lock.acquire(timeout=0)
            except Timeout:
                logger.info("Sync drain already running on %s, skipped", self.store.path)
                return DrainResult()
            try:
                return self._drain()
            finally:
                self.store.drain_lock.release()
        finally:
            self._drain_lock.release()

    @contextmanager
    def _locked_store(self):
        with self._store_lock:
            self.store.ensure_directory()
            with self.store.lock:
                yield

    def _drain(self) -> DrainResult:
        result = DrainResult()

        with self._locked_store():
            if not self.store.exists():
                return result
            snapshot = [raw for raw in self.store.load() if not raw.get("synced")]
        if not snapshot:
            return result

        synced_ids: set[str] = set()
        for raw in snapshot:
            item_id = raw.get("id")
            try:
                item = SyncQueueItem.from_dict(raw)
                self.backend.apply(item.mutation)
            except Exception as e:
                result.failed += 1
                result.failures.append((item_id, str(e)))
                logger.warning(
                    "Sync item %s failed (%s %s): %s",
                    item_id, raw.get("operation"), raw.get("table"), e,
                )
                continue
            synced_ids.add(item_id)
            result.success += 1

        with self._locked_store():
            # Reload: items appended during replay must survive
            items = self.store.load()
            for raw in items:
                if raw.get("id") in synced_ids:
                    raw["synced"] = True
            if any(not raw.get("synced") for raw in items):
                self.store.save(items)
            else:
                self.store.clear()

        if result.success or result.failed:
            logger.info("Sync drain finished: %s synced, %s failed", result.success, result.failed)
        return result


# Process-wide queue
_queue = None


def get_offline_queue() -> OfflineMutationQueue:
    """
    Build the queue from settings once.

    Replays to SYNC_BACKEND_URL when set, otherwise into the local database.

    Raises:
        RuntimeError: SYNC_QUEUE_PATH not configured
    """
    global _queue
    if _queue is None:
        from communityfund.config import get_settings
        from communityfund.infrastructure.db import models
        from communityfund.infrastructure.db.session import get_session_factory
        from communityfund.infrastructure.sync.backend import DatabaseBackend, RestBackend

        settings = get_settings()
        if not settings.SYNC_QUEUE_PATH:
            raise RuntimeError("SYNC_QUEUE_PATH is not configured")

        if settings.SYNC_BACKEND_URL:
            backend = RestBackend(
                settings.SYNC_BACKEND_URL,
                api_key=settings.SYNC_BACKEND_API_KEY,
                timeout=settings.SYNC_REQUEST_TIMEOUT,
            )
        else:
            backend = DatabaseBackend(get_session_factory(), models.Base.metadata)

        _queue = OfflineMutationQueue(
            JsonFileQueueStore(settings.SYNC_QUEUE_PATH),
            backend,
            schema=schema_from_metadata(models.Base.metadata),
        )
    return _queue
