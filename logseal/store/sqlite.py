"""SQLite content store.

digest is the PRIMARY KEY, so reserve() is INSERT OR IGNORE and the
database enforces insert-if-absent. Transitions run inside
BEGIN IMMEDIATE so concurrent writers serialize on the write lock.
"""
import sqlite3
import threading
import time
from contextlib import contextmanager
from pathlib import Path

from ..anchor.hash import normalize_digest
from ..core.constants import LOG_KIND_DEVICE
from ..core.errors import RecordNotFound
from .base import check_limit, check_reserve_args, transition_anchored, transition_failed
from .record import AnchorRecord, AnchorStatus, LedgerReference, ReserveResult, now_iso

_SCHEMA = """
CREATE TABLE IF NOT EXISTS anchor_records (
    digest TEXT PRIMARY KEY,
    subject_id TEXT,
    kind TEXT NOT NULL,
    logged_at INTEGER NOT NULL,
    uri TEXT NOT NULL DEFAULT '',
    status TEXT NOT NULL,
    tx_hash TEXT,
    block_number INTEGER,
    token_id INTEGER,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL,
    attempts INTEGER NOT NULL DEFAULT 0,
    last_error TEXT
);
CREATE INDEX IF NOT EXISTS ix_anchor_records_status
    ON anchor_records(status, created_at);
CREATE INDEX IF NOT EXISTS ix_anchor_records_subject
    ON anchor_records(subject_id, created_at);
"""

_COLUMNS = (
    "digest, subject_id, kind, logged_at, uri, status, tx_hash, block_number, "
    "token_id, created_at, updated_at, attempts, last_error"
)


def _row_to_record(row) -> AnchorRecord:
    reference = None
    if row["tx_hash"] is not None:
        reference = LedgerReference(
            tx_hash=row["tx_hash"],
            block_number=row["block_number"],
            token_id=row["token_id"],
        )
    return AnchorRecord(
        digest=row["digest"],
        subject_id=row["subject_id"],
        kind=row["kind"],
        logged_at=row["logged_at"],
        uri=row["uri"],
        status=AnchorStatus(row["status"]),
        ledger_reference=reference,
        created_at=row["created_at"],
        updated_at=row["updated_at"],
        attempts=row["attempts"],
        last_error=row["last_error"],
    )


class SqliteContentStore:
    """Content-addressed digest -> AnchorRecord store on SQLite."""

    def __init__(self, path: str = "logseal_records.db"):
        self.path = str(path)
        if self.path != ":memory:":
            Path(self.path).parent.mkdir(parents=True, exist_ok=True)
        self._lock = threading.RLock()
        self._conn = sqlite3.connect(
            self.path,
            timeout=30.0,
            isolation_level=None,
            check_same_thread=False,
        )
        self._conn.row_factory = sqlite3.Row
        self._conn.execute("PRAGMA busy_timeout=30000")
        if self.path != ":memory:":
            self._conn.execute("PRAGMA journal_mode=WAL")
        self._conn.executescript(_SCHEMA)

    def close(self) -> None:
        with self._lock:
            self._conn.close()

    @contextmanager
    def _transaction(self):
        with self._lock:
            self._conn.execute("BEGIN IMMEDIATE")
            try:
                yield self._conn
            except BaseException:
                self._conn.execute("ROLLBACK")
                raise
            else:
                self._conn.execute("COMMIT")

    def _select(self, conn, digest: str) -> AnchorRecord | None:
        row = conn.execute(
            f"SELECT {_COLUMNS} FROM anchor_records WHERE digest = ?", (digest,)
        ).fetchone()
        return _row_to_record(row) if row else None

    def _write(self, conn, record: AnchorRecord) -> None:
        ref = record.ledger_reference
        conn.execute(
            "UPDATE anchor_records SET status = ?, tx_hash = ?, block_number = ?, "
            "token_id = ?, updated_at = ?, attempts = ?, last_error = ? WHERE digest = ?",
            (
                record.status.value,
                ref.tx_hash if ref else None,
                ref.block_number if ref else None,
                ref.token_id if ref else None,
                record.updated_at,
                record.attempts,
                record.last_error,
                record.digest,
            ),
        )

    def reserve(
        self,
        digest: str,
        subject_id: str | None,
        kind: str = LOG_KIND_DEVICE,
        logged_at: int | None = None,
        uri: str = "",
    ) -> ReserveResult:
        """Insert a PENDING record unless one already exists for digest."""
        digest = check_reserve_args(digest, kind)
        ts = now_iso()
        with self._transaction() as conn:
            cursor = conn.execute(
                "INSERT OR IGNORE INTO anchor_records "
                "(digest, subject_id, kind, logged_at, uri, status, created_at, updated_at) "
                "VALUES (?, ?, ?, ?, ?, ?, ?, ?)",
                (
                    digest,
                    subject_id,
                    kind,
                    int(time.time()) if logged_at is None else int(logged_at),
                    uri or "",
                    AnchorStatus.PENDING.value,
                    ts,
                    ts,
                ),
            )
            record = self._select(conn, digest)
        return ReserveResult(record=record, is_new=cursor.rowcount == 1)

    def mark_anchored(self, digest: str, reference: LedgerReference) -> AnchorRecord:
        digest = normalize_digest(digest)
        with self._transaction() as conn:
            record = self._select(conn, digest)
            if record is None:
                raise RecordNotFound(digest)
            updated = transition_anchored(record, reference)
            if updated is None:
                return record
            self._write(conn, updated)
            return updated

    def record_failure(self, digest: str, error: str) -> AnchorRecord:
        digest = normalize_digest(digest)
        with self._transaction() as conn:
            record = self._select(conn, digest)
            if record is None:
                raise RecordNotFound(digest)
            updated = transition_failed(record, error)
            if updated is None:
                return record
            self._write(conn, updated)
            return updated

    def find_by_digest(self, digest: str) -> AnchorRecord | None:
        digest = normalize_digest(digest)
        with self._lock:
            return self._select(self._conn, digest)

    def find_all_by_digest(self, digest: str) -> list[AnchorRecord]:
        # Primary key: at most one row per digest
        record = self.find_by_digest(digest)
        return [record] if record else []

    def find_by_subject(self, subject_id: str | None, limit: int = 100) -> list[AnchorRecord]:
        check_limit(limit)
        with self._lock:
            rows = self._conn.execute(
                f"SELECT {_COLUMNS} FROM anchor_records WHERE subject_id IS ? "
                "ORDER BY created_at DESC, rowid DESC LIMIT ?",
                (subject_id, limit),
            ).fetchall()
        return [_row_to_record(r) for r in rows]

    def list_recent(self, limit: int = 100) -> list[AnchorRecord]:
        check_limit(limit)
        with self._lock:
            rows = self._conn.execute(
                f"SELECT {_COLUMNS} FROM anchor_records "
                "ORDER BY created_at DESC, rowid DESC LIMIT ?",
                (limit,),
            ).fetchall()
        return [_row_to_record(r) for r in rows]

    def list_unanchored(self, limit: int = 50, offset: int = 0) -> list[AnchorRecord]:
        check_limit(limit)
        check_limit(offset)
        with self._lock:
            rows = self._conn.execute(
                f"SELECT {_COLUMNS} FROM anchor_records WHERE status = ? "
                "ORDER BY created_at ASC, rowid ASC LIMIT ? OFFSET ?",
                (AnchorStatus.PENDING.value, limit, offset),
            ).fetchall()
        return [_row_to_record(r) for r in rows]

    def stats(self) -> dict:
        with self._lock:
            rows = self._conn.execute(
                "SELECT status, COUNT(*) AS n FROM anchor_records GROUP BY status"
            ).fetchall()
        counts = {row["status"]: row["n"] for row in rows}
        pending = counts.get(AnchorStatus.PENDING.value, 0)
        anchored = counts.get(AnchorStatus.ANCHORED.value, 0)
        return {"total": pending + anchored, "pending": pending, "anchored": anchored}
