"""Anchoring pipeline: canonicalize -> hash -> reserve -> submit -> persist.

Local durability is the strong guarantee. Once reserve() succeeds the
caller's data is recorded; ledger submission is best effort, and a failed
submission leaves the record PENDING for the sweeper. Ledger errors are
never raised to the caller.
"""
import logging
import threading
import time
from concurrent.futures import Future, ThreadPoolExecutor, wait
from dataclasses import dataclass
from typing import Any

from ..anchor.hash import content_digest, ledger_digest
from ..canon import canonical_form
from ..config import SealConfig
from ..core.constants import BROADCAST_SUBJECT, KIND_COMMAND, LOG_KIND_COMMAND, LOG_KIND_DEVICE
from ..core.errors import LedgerError, LedgerTransientFailure, StoreInvariantViolation, ValidationError
from ..core.receipt import emit_receipt
from ..store.record import AnchorRecord, AnchorStatus, LedgerReference

logger = logging.getLogger("logseal.pipeline")


@dataclass(frozen=True)
class AnchorResult:
    """What the caller observes: digest, status, and reference if anchored."""
    digest: str
    status: AnchorStatus
    subject_id: str | None = None
    ledger_reference: LedgerReference | None = None
    error: str | None = None

    def to_dict(self) -> dict:
        return {
            "digest": self.digest,
            "status": self.status.value,
            "subject_id": self.subject_id,
            "ledger_reference": (
                self.ledger_reference.to_dict() if self.ledger_reference else None
            ),
            "error": self.error,
        }


@dataclass(frozen=True)
class SubmitOutcome:
    record: AnchorRecord
    error: LedgerError | None = None

    @property
    def succeeded(self) -> bool:
        return self.error is None and self.record.is_anchored


def submit_record(store, ledger, record: AnchorRecord, stage: str = "anchor",
                  tenant_id: str = "default") -> SubmitOutcome:
    """Submit a reserved record to the ledger and persist the outcome.

    The submission is re-derived from the record alone (digest, subject,
    kind, logged_at, uri). No store lock is held across the ledger call.

    Returns:
        SubmitOutcome with the record's new state and the ledger error, if any
    """
    subject = record.subject_id or BROADCAST_SUBJECT
    try:
        reference = ledger.submit(
            subject,
            ledger_digest(record.digest),
            record.kind,
            record.logged_at,
            record.uri,
        )
    except LedgerError as e:
        error = e
    except Exception as e:
        # Errors outside the taxonomy (transport bugs, timeouts) count as transient
        error = LedgerTransientFailure(f"{type(e).__name__}: {e}")
    else:
        try:
            return SubmitOutcome(record=store.mark_anchored(record.digest, reference))
        except StoreInvariantViolation as e:
            logger.error("anchored %s but store refused the reference: %s", record.digest, e)
            return SubmitOutcome(
                record=store.find_by_digest(record.digest) or record,
                error=LedgerTransientFailure(str(e)),
            )

    updated = store.record_failure(record.digest, str(error))
    logger.warning("ledger submission failed for %s (%s): %s",
                   record.digest, "permanent" if error.permanent else "transient", error)
    emit_receipt("anomaly", {
        "anomaly_type": "ledger_submit_failed",
        "stage": stage,
        "digest": record.digest,
        "subject_id": subject,
        "error": str(error),
        "permanent": error.permanent,
        "attempts": updated.attempts,
    }, tenant_id)
    return SubmitOutcome(record=updated, error=error)


class AnchoringPipeline:
    """Orchestrates anchoring for many concurrent producers.

    Args:
        store: ContentStore or SqliteContentStore
        ledger: Connected LedgerClient
        config: SealConfig (defaults if None)
    """

    def __init__(self, store, ledger, config: SealConfig | None = None):
        self.store = store
        self.ledger = ledger
        self.config = config or SealConfig()
        self._executor: ThreadPoolExecutor | None = None
        self._tasks: dict[str, Future] = {}
        self._sync: set[str] = set()
        self._lock = threading.RLock()
        self._closed = False

    def __enter__(self) -> "AnchoringPipeline":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def _reserve(self, entries: Any, subject_id: str | None, metadata: dict | None,
                 kind: str | None):
        form = canonical_form(entries, kind)
        digest = content_digest(form.data)
        emit_receipt("canonicalize", {
            "kind": form.kind,
            "entry_count": form.entry_count,
            "digest": digest,
            "byte_length": len(form),
        }, self.config.tenant_id)

        metadata = dict(metadata or {})
        default_kind = LOG_KIND_COMMAND if form.kind == KIND_COMMAND else LOG_KIND_DEVICE
        log_kind = metadata.get("log_kind", default_kind)
        logged_at = metadata.get("logged_at")
        if logged_at is None:
            logged_at = int(time.time())
        elif isinstance(logged_at, bool) or not isinstance(logged_at, (int, float)):
            raise ValidationError(f"logged_at must be unix seconds, got {logged_at!r}")

        reserved = self.store.reserve(
            digest,
            subject_id,
            kind=log_kind,
            logged_at=int(logged_at),
            uri=metadata.get("uri", ""),
        )
        return digest, reserved

    def _emit(self, result: AnchorResult, mode: str) -> None:
        emit_receipt("anchor", {
            "digest": result.digest,
            "subject_id": result.subject_id or BROADCAST_SUBJECT,
            "status": result.status.value,
            "ledger_reference": (
                result.ledger_reference.to_dict() if result.ledger_reference else None
            ),
            "mode": mode,
        }, self.config.tenant_id)

    def _duplicate(self, record: AnchorRecord, mode: str) -> AnchorResult:
        result = AnchorResult(
            digest=record.digest,
            status=AnchorStatus.DUPLICATE,
            subject_id=record.subject_id,
            ledger_reference=record.ledger_reference,
        )
        self._emit(result, mode)
        return result

    def _submit(self, record: AnchorRecord, mode: str) -> AnchorResult:
        outcome = submit_record(self.store, self.ledger, record, "anchor", self.config.tenant_id)
        result = AnchorResult(
            digest=record.digest,
            status=outcome.record.status,
            subject_id=record.subject_id,
            ledger_reference=outcome.record.ledger_reference,
            error=str(outcome.error) if outcome.error else None,
        )
        self._emit(result, mode)
        return result

    def anchor(
        self,
        entries: Any,
        subject_id: str | None = None,
        metadata: dict | None = None,
        kind: str | None = None,
    ) -> AnchorResult:
        """Anchor entries and wait for the ledger outcome.

        Args:
            entries: LogEntry, mapping, or sequence of either
            subject_id: Device identity, or None for broadcast
            metadata: Optional log_kind, logged_at (unix seconds), uri
            kind: Entry kind when entries are raw mappings

        Returns:
            AnchorResult: ANCHORED on ledger success, PENDING on ledger
            failure, DUPLICATE when the digest was already reserved

        Raises:
            ValidationError: Input rejected; nothing persisted
        """
        digest, reserved = self._reserve(entries, subject_id, metadata, kind)
        if not reserved.is_new:
            return self._duplicate(reserved.record, "sync")
        with self._lock:
            self._sync.add(digest)
        try:
            return self._submit(reserved.record, "sync")
        finally:
            with self._lock:
                self._sync.discard(digest)

    def anchor_async(
        self,
        entries: Any,
        subject_id: str | None = None,
        metadata: dict | None = None,
        kind: str | None = None,
    ) -> AnchorResult:
        """Reserve synchronously, submit to the ledger on a background task.

        Returns PENDING (or DUPLICATE) immediately. The task is tracked by
        digest; see in_flight(), task(), join().
        """
        digest, reserved = self._reserve(entries, subject_id, metadata, kind)
        if not reserved.is_new:
            return self._duplicate(reserved.record, "async")

        self._schedule(reserved.record)
        result = AnchorResult(
            digest=digest,
            status=AnchorStatus.PENDING,
            subject_id=subject_id,
        )
        self._emit(result, "async")
        return result

    def _get_executor(self) -> ThreadPoolExecutor:
        if self._executor is None:
            self._executor = ThreadPoolExecutor(
                max_workers=self.config.pipeline_max_workers,
                thread_name_prefix="logseal-anchor",
            )
        return self._executor

    def _schedule(self, record: AnchorRecord) -> Future:
        with self._lock:
            if self._closed:
                raise RuntimeError("pipeline is closed")
            current = self._tasks.get(record.digest)
            if current is not None and not current.done():
                return current
            future = self._get_executor().submit(self._submit, record, "async")
            self._tasks[record.digest] = future
            future.add_done_callback(lambda f, d=record.digest: self._forget(d, f))
            return future

    def _forget(self, digest: str, future: Future) -> None:
        with self._lock:
            if self._tasks.get(digest) is future:
                del self._tasks[digest]

    def task(self, digest: str) -> Future | None:
        with self._lock:
            return self._tasks.get(digest)

    def in_flight(self, digest: str) -> bool:
        """True while a submission for digest is queued or running, sync or background."""
        with self._lock:
            if digest in self._sync:
                return True
            future = self._tasks.get(digest)
        return future is not None and not future.done()

    def pending_tasks(self) -> list[str]:
        with self._lock:
            return [d for d, f in self._tasks.items() if not f.done()]

    def join(self, timeout: float | None = None) -> list[AnchorResult]:
        """Wait for outstanding background submissions.

        Returns:
            Results of the tasks that finished within timeout
        """
        with self._lock:
            futures = list(self._tasks.values())
        if not futures:
            return []
        done, _ = wait(futures, timeout=timeout)
        return [f.result() for f in done]

    def close(self) -> None:
        """Join outstanding tasks and release the worker pool."""
        with self._lock:
            self._closed = True
        self.join()
        if self._executor is not None:
            self._executor.shutdown(wait=True)
            self._executor = None
