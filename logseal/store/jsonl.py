"""Append-only content store backed by a JSONL event log.

Every line is one event carrying a full record snapshot:
    {"event": "reserve" | "anchored" | "failure", "record": {...}}

Mutations take an in-process lock and an exclusive flock on the file for
the whole read-check-append, so reserve() is an atomic insert-if-absent
across threads and processes. The in-memory index is refreshed from the
last read offset under the same lock.
"""
import fcntl
import json
import logging
import threading
import time
from contextlib import contextmanager
from pathlib import Path

from ..core.constants import DEFAULT_STORE_PATH, LOG_KIND_DEVICE
from ..core.errors import RecordNotFound
from ..anchor.hash import normalize_digest
from .base import check_limit, check_reserve_args, transition_anchored, transition_failed
from .record import AnchorRecord, AnchorStatus, LedgerReference, ReserveResult

EVENT_RESERVE = "reserve"
EVENT_ANCHORED = "anchored"
EVENT_FAILURE = "failure"

logger = logging.getLogger("logseal.store")


class ContentStore:
    """Content-addressed digest -> AnchorRecord store on a JSONL file.

    Attributes:
        path: Path to the JSONL event log
    """

    def __init__(self, path: str = DEFAULT_STORE_PATH):
        """Initialize ContentStore.

        Args:
            path: Path to JSONL file for record events
        """
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        if not self.path.exists():
            self.path.touch()

        self._lock = threading.RLock()
        self._offset = 0
        self._records: dict[str, AnchorRecord] = {}
        self._reservations: dict[str, list[AnchorRecord]] = {}

    @contextmanager
    def _locked(self, exclusive: bool):
        mode = fcntl.LOCK_EX if exclusive else fcntl.LOCK_SH
        with self._lock:
            with open(self.path, "a+") as f:
                fcntl.flock(f.fileno(), mode)
                try:
                    self._refresh(f)
                    yield f
                finally:
                    fcntl.flock(f.fileno(), fcntl.LOCK_UN)

    def _refresh(self, f) -> None:
        f.seek(self._offset)
        while True:
            line = f.readline()
            if not line or not line.endswith("\n"):
                break
            self._offset = f.tell()
            if line.strip():
                self._apply(json.loads(line))

    def _apply(self, event: dict) -> None:
        record = AnchorRecord.from_dict(event["record"])
        if event["event"] == EVENT_RESERVE:
            self._reservations.setdefault(record.digest, []).append(record)
            self._records.setdefault(record.digest, record)
        else:
            self._records[record.digest] = record

    def _append(self, f, event_type: str, record: AnchorRecord) -> None:
        f.seek(0, 2)
        if f.tell() > self._offset:
            # Torn line from a writer that died mid-append
            logger.warning("dropping %d trailing bytes of partial event in %s",
                           f.tell() - self._offset, self.path)
            f.truncate(self._offset)
        event = {"event": event_type, "record": record.to_dict()}
        f.write(json.dumps(event, sort_keys=True) + "\n")
        f.flush()
        self._offset = f.tell()
        self._apply(event)

    def reserve(
        self,
        digest: str,
        subject_id: str | None,
        kind: str = LOG_KIND_DEVICE,
        logged_at: int | None = None,
        uri: str = "",
    ) -> ReserveResult:
        """Insert a PENDING record unless one already exists for digest.

        Args:
            digest: Content digest (hex)
            subject_id: Device identity or None for broadcast
            kind: Ledger log type
            logged_at: Unix seconds (defaults to now)
            uri: Optional raw-log pointer

        Returns:
            ReserveResult with is_new=False and the existing record when
            the digest was already reserved
        """
        digest = check_reserve_args(digest, kind)
        with self._locked(exclusive=True) as f:
            existing = self._records.get(digest)
            if existing is not None:
                return ReserveResult(record=existing, is_new=False)

            record = AnchorRecord(
                digest=digest,
                subject_id=subject_id,
                kind=kind,
                logged_at=int(time.time()) if logged_at is None else int(logged_at),
                uri=uri or "",
            )
            self._append(f, EVENT_RESERVE, record)
            return ReserveResult(record=record, is_new=True)

    def mark_anchored(self, digest: str, reference: LedgerReference) -> AnchorRecord:
        """Transition PENDING -> ANCHORED. Idempotent for the same reference.

        Raises:
            RecordNotFound: No record for digest
            StoreInvariantViolation: Already anchored elsewhere
        """
        digest = normalize_digest(digest)
        with self._locked(exclusive=True) as f:
            record = self._records.get(digest)
            if record is None:
                raise RecordNotFound(digest)
            updated = transition_anchored(record, reference)
            if updated is None:
                return record
            self._append(f, EVENT_ANCHORED, updated)
            return updated

    def record_failure(self, digest: str, error: str) -> AnchorRecord:
        """Count a failed submission on a PENDING record.

        Raises:
            RecordNotFound: No record for digest
        """
        digest = normalize_digest(digest)
        with self._locked(exclusive=True) as f:
            record = self._records.get(digest)
            if record is None:
                raise RecordNotFound(digest)
            updated = transition_failed(record, error)
            if updated is None:
                return record
            self._append(f, EVENT_FAILURE, updated)
            return updated

    def find_by_digest(self, digest: str) -> AnchorRecord | None:
        digest = normalize_digest(digest)
        with self._locked(exclusive=False):
            return self._records.get(digest)

    def find_all_by_digest(self, digest: str) -> list[AnchorRecord]:
        """Every reservation persisted for digest, with current state.

        More than one entry means the log was written outside reserve().
        """
        digest = normalize_digest(digest)
        with self._locked(exclusive=False):
            reservations = self._reservations.get(digest, [])
            if len(reservations) <= 1:
                current = self._records.get(digest)
                return [current] if current else []
            return list(reservations)

    def find_by_subject(self, subject_id: str | None, limit: int = 100) -> list[AnchorRecord]:
        """Records for a subject, newest first."""
        check_limit(limit)
        with self._locked(exclusive=False):
            matches = [r for r in self._records.values() if r.subject_id == subject_id]
        matches.reverse()
        matches.sort(key=lambda r: r.created_at, reverse=True)
        return matches[:limit]

    def list_recent(self, limit: int = 100) -> list[AnchorRecord]:
        """All records, newest first."""
        check_limit(limit)
        with self._locked(exclusive=False):
            records = list(self._records.values())
        records.reverse()
        records.sort(key=lambda r: r.created_at, reverse=True)
        return records[:limit]

    def list_unanchored(self, limit: int = 50, offset: int = 0) -> list[AnchorRecord]:
        """PENDING records, oldest first, skipping the first `offset`."""
        check_limit(limit)
        check_limit(offset)
        with self._locked(exclusive=False):
            pending = [r for r in self._records.values()
                       if r.status == AnchorStatus.PENDING]
        pending.sort(key=lambda r: r.created_at)
        return pending[offset:offset + limit]

    def stats(self) -> dict:
        with self._locked(exclusive=False):
            records = list(self._records.values())
        return {
            "total": len(records),
            "pending": sum(1 for r in records if r.status == AnchorStatus.PENDING),
            "anchored": sum(1 for r in records if r.status == AnchorStatus.ANCHORED),
        }

    def close(self) -> None:
        """Nothing to release: the file is opened per operation."""
