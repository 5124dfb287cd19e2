"""Reconciliation sweeper.

Finds PENDING records and retries their ledger submission from the stored
digest and subject. Consecutive sweeps over a stuck record are safe: the
PENDING -> ANCHORED transition is idempotent.

Sweep process:
1. Page through PENDING records, oldest first, until batch_size are due
2. Skip records in flight in the pipeline or inside their grace or backoff window
3. Group by subject; each group is submitted sequentially by one worker
4. Run groups on a bounded pool
5. Tally outcomes and emit a sweep receipt
"""
import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Callable, Optional

from ..config import SealConfig
from ..core.receipt import emit_receipt
from ..store.record import AnchorRecord, parse_iso
from .anchor import AnchoringPipeline, submit_record

logger = logging.getLogger("logseal.sweep")


@dataclass
class SweepReport:
    """Outcome of one sweep. processed == succeeded + failed."""
    processed: int = 0
    succeeded: int = 0
    failed: int = 0
    skipped: int = 0
    errors: list[dict] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "processed": self.processed,
            "succeeded": self.succeeded,
            "failed": self.failed,
            "skipped": self.skipped,
            "errors": list(self.errors),
        }


class Sweeper:
    """Retries PENDING anchor records with bounded concurrency and backoff.

    Args:
        store: Content store shared with the pipeline
        ledger: Connected LedgerClient
        config: SealConfig (defaults if None)
        pipeline: Optional pipeline whose in-flight digests are skipped
        clock: Returns current unix time, for backoff decisions
    """

    def __init__(
        self,
        store,
        ledger,
        config: SealConfig | None = None,
        pipeline: AnchoringPipeline | None = None,
        clock: Callable[[], float] = time.time,
    ):
        self.store = store
        self.ledger = ledger
        self.config = config or SealConfig()
        self.pipeline = pipeline
        self.clock = clock
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None
        self.last_report: SweepReport | None = None

    def backoff_seconds(self, attempts: int) -> float:
        """Wait before retry number attempts+1. No wait before the first retry."""
        if attempts <= 0:
            return 0.0
        delay = self.config.backoff_base_seconds * (2 ** (attempts - 1))
        return min(delay, self.config.backoff_max_seconds)

    def is_due(self, record: AnchorRecord, now: float | None = None) -> bool:
        """Never-attempted records wait out the grace window after creation,
        giving a synchronous anchor() in another process time to finish."""
        now = self.clock() if now is None else now
        if record.attempts <= 0:
            created = parse_iso(record.created_at).timestamp()
            return created + self.config.sweep_grace_seconds <= now
        last = parse_iso(record.updated_at).timestamp()
        return last + self.backoff_seconds(record.attempts) <= now

    def _select(self, batch_size: int, now: float, report: SweepReport) -> list[AnchorRecord]:
        """Up to batch_size due records, paging past ones that are not due."""
        selected: list[AnchorRecord] = []
        if batch_size <= 0:
            return selected
        offset = 0
        while len(selected) < batch_size:
            page = self.store.list_unanchored(batch_size, offset=offset)
            for record in page:
                if len(selected) >= batch_size:
                    break
                if self.pipeline is not None and self.pipeline.in_flight(record.digest):
                    report.skipped += 1
                elif not self.is_due(record, now):
                    report.skipped += 1
                else:
                    selected.append(record)
            if len(page) < batch_size:
                break
            offset += batch_size
        return selected

    def _retry_group(self, records: list[AnchorRecord]) -> list[tuple[AnchorRecord, object]]:
        """Submit one subject's records in order. Each item is isolated."""
        outcomes = []
        for record in records:
            try:
                current = self.store.find_by_digest(record.digest)
                if current is None or current.is_anchored:
                    outcomes.append((record, None))
                    continue
                outcomes.append((record, submit_record(
                    self.store, self.ledger, current, "sweep", self.config.tenant_id
                )))
            except Exception as e:
                logger.exception("sweep failed for %s", record.digest)
                outcomes.append((record, e))
        return outcomes

    def sweep(self, batch_size: int | None = None) -> SweepReport:
        """Retry one batch of PENDING records.

        Args:
            batch_size: Max records retried (defaults to config.sweep_batch_size)

        Returns:
            SweepReport with per-item errors
        """
        if batch_size is None:
            batch_size = self.config.sweep_batch_size
        report = SweepReport()
        now = self.clock()

        groups: dict[str | None, list[AnchorRecord]] = {}
        for record in self._select(batch_size, now, report):
            groups.setdefault(record.subject_id, []).append(record)

        results = []
        if groups:
            workers = min(self.config.sweep_max_workers, len(groups))
            with ThreadPoolExecutor(max_workers=workers,
                                    thread_name_prefix="logseal-sweep") as pool:
                futures = [pool.submit(self._retry_group, g) for g in groups.values()]
                for future in futures:
                    results.extend(future.result())

        for record, outcome in results:
            if outcome is None:
                report.skipped += 1
                continue
            report.processed += 1
            if isinstance(outcome, Exception):
                report.failed += 1
                report.errors.append({
                    "digest": record.digest,
                    "subject_id": record.subject_id,
                    "error": str(outcome),
                    "permanent": False,
                    "attempts": record.attempts,
                })
            elif outcome.succeeded:
                report.succeeded += 1
            else:
                report.failed += 1
                report.errors.append({
                    "digest": record.digest,
                    "subject_id": record.subject_id,
                    "error": str(outcome.error),
                    "permanent": outcome.error.permanent if outcome.error else False,
                    "attempts": outcome.record.attempts,
                })

        emit_receipt("sweep", {
            "processed": report.processed,
            "succeeded": report.succeeded,
            "failed": report.failed,
            "skipped": report.skipped,
            "permanent_failures": sum(1 for e in report.errors if e["permanent"]),
        }, self.config.tenant_id)
        self.last_report = report
        return report

    def start(
        self,
        interval_seconds: float | None = None,
        callback: Optional[Callable[[SweepReport], None]] = None,
    ) -> None:
        """Start sweeping on a daemon thread at a fixed interval."""
        if self._thread is not None and self._thread.is_alive():
            return
        interval = interval_seconds or self.config.sweep_interval_seconds
        self._stop.clear()

        def sweep_loop():
            while not self._stop.is_set():
                try:
                    report = self.sweep()
                    if callback:
                        callback(report)
                except Exception:
                    logger.exception("background sweep failed")
                self._stop.wait(interval)

        self._thread = threading.Thread(target=sweep_loop, name="logseal-sweeper", daemon=True)
        self._thread.start()

    def stop(self, timeout: float | None = None) -> None:
        """Stop the background loop and wait for the current sweep."""
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()
