"""
Index reconciliation.
Repairs drift between the `orders` index set and the primary records:
index entries without a record are dropped, records missing from the index
are added. Runs once from the CLI or periodically via ReconcileScheduler.
"""

import logging
import threading
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Iterator, List, Optional

import redis
from redis.exceptions import RedisError, WatchError

from .errors import StoreUnavailable
from .models import INDEX_KEY, KEY_PREFIX

logger = logging.getLogger(__name__)


@dataclass
class ReconcileResult:
    """Counters for one sweep."""
    index_scanned: int = 0
    records_scanned: int = 0
    dangling_removed: int = 0
    unindexed_added: int = 0
    dry_run: bool = False
    interrupted: bool = False

    @property
    def repaired(self) -> int:
        return self.dangling_removed + self.unindexed_added


class IndexReconciler:
    """One-shot sweep over the index set and the primary keyspace."""

    def __init__(
        self,
        client: redis.Redis,
        key_prefix: str = KEY_PREFIX,
        index_key: str = INDEX_KEY,
        batch_size: int = 200
    ):
        self.client = client
        self.key_prefix = key_prefix
        self.index_key = index_key
        self.batch_size = batch_size

    def run(self, dry_run: bool = False, stop_event: Optional[threading.Event] = None) -> ReconcileResult:
        """
        Run a full sweep.

        With dry_run the drift is counted but nothing is written. Setting
        stop_event ends the sweep after the current batch.
        """
        result = ReconcileResult(dry_run=dry_run)
        stop_event = stop_event or threading.Event()
        logger.info(f"Reconciling index '{self.index_key}' (dry_run={dry_run})")

        try:
            self._drop_dangling(result, dry_run, stop_event)
            if not stop_event.is_set():
                self._index_unindexed(result, dry_run, stop_event)
        except RedisError as e:
            raise StoreUnavailable("reconcile", self.index_key, str(e)) from e

        result.interrupted = stop_event.is_set()
        logger.info(
            f"Reconcile done: {result.index_scanned} index entries, "
            f"{result.records_scanned} records, "
            f"{result.dangling_removed} dangling removed, "
            f"{result.unindexed_added} unindexed added"
        )
        return result

    # ==================== Index -> records ====================

    def _index_batches(self) -> Iterator[List[str]]:
        cursor = 0
        while True:
            cursor, keys = self.client.sscan(self.index_key, cursor=cursor, count=self.batch_size)
            if keys:
                yield list(keys)
            if cursor == 0:
                return

    def _drop_dangling(self, result: ReconcileResult, dry_run: bool, stop_event: threading.Event) -> None:
        for keys in self._index_batches():
            result.index_scanned += len(keys)
            with self.client.pipeline(transaction=False) as pipe:
                for key in keys:
                    pipe.exists(key)
                present = pipe.execute()

            for key, exists in zip(keys, present):
                if exists:
                    continue
                logger.warning(f"Index entry {key} has no record")
                if dry_run or self._remove_if_missing(key):
                    result.dangling_removed += 1

            if stop_event.is_set():
                return

    def _remove_if_missing(self, key: str) -> bool:
        """SREM the entry unless the record appears while we decide."""
        with self.client.pipeline() as pipe:
            try:
                pipe.watch(key)
                if pipe.exists(key):
                    return False
                pipe.multi()
                pipe.srem(self.index_key, key)
                removed, = pipe.execute()
                return bool(removed)
            except WatchError:
                logger.debug(f"{key} changed during reconcile, skipped")
                return False

    # ==================== Records -> index ====================

    def _record_batches(self) -> Iterator[List[str]]:
        batch = []
        for key in self.client.scan_iter(match=f"{self.key_prefix}*", count=self.batch_size):
            batch.append(key)
            if len(batch) >= self.batch_size:
                yield batch
                batch = []
        if batch:
            yield batch

    def _index_unindexed(self, result: ReconcileResult, dry_run: bool, stop_event: threading.Event) -> None:
        for keys in self._record_batches():
            result.records_scanned += len(keys)
            with self.client.pipeline(transaction=False) as pipe:
                for key in keys:
                    pipe.sismember(self.index_key, key)
                indexed = pipe.execute()

            for key, is_member in zip(keys, indexed):
                if is_member:
                    continue
                logger.warning(f"Record {key} is missing from the index")
                if dry_run or self._add_if_present(key):
                    result.unindexed_added += 1

            if stop_event.is_set():
                return

    def _add_if_present(self, key: str) -> bool:
        """SADD the key unless the record is deleted while we decide."""
        with self.client.pipeline() as pipe:
            try:
                pipe.watch(key)
                if not pipe.exists(key):
                    return False
                pipe.multi()
                pipe.sadd(self.index_key, key)
                added, = pipe.execute()
                return bool(added)
            except WatchError:
                logger.debug(f"{key} changed during reconcile, skipped")
                return False


class ReconcileScheduler:
    """Runs the reconciler every `interval_minutes` until stopped."""

    def __init__(self, reconciler: IndexReconciler, interval_minutes: float = 30):
        self.reconciler = reconciler
        self.interval = timedelta(minutes=interval_minutes)
        self.stop_event = threading.Event()
        self.runs = 0

    def run(self) -> None:
        """Start the scheduler loop; the first sweep runs immediately."""
        logger.info(f"Starting reconcile scheduler (every {self.interval})")

        while not self.stop_event.is_set():
            self._run_job()
            next_run = datetime.now() + self.interval
            logger.info(f"Next reconcile scheduled for {next_run.strftime('%Y-%m-%d %H:%M:%S')}")
            self.stop_event.wait(self.interval.total_seconds())

    def _run_job(self) -> Optional[ReconcileResult]:
        """Execute one sweep; failures are logged and retried next interval."""
        self.runs += 1
        try:
            return self.reconciler.run(stop_event=self.stop_event)
        except StoreUnavailable as e:
            logger.error(f"Scheduled reconcile failed: {e}")
            return None

    def stop(self) -> None:
        """Stop the scheduler."""
        logger.info("Stopping reconcile scheduler...")
        self.stop_event.set()
