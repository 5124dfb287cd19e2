"""Append-only ledger on a local JSONL file.

Each accepted submission is one line. Thread-safe and process-safe with
file locking on write. Used for local operation of the CLI when no
external ledger is configured.
"""
import fcntl
import json
import threading
from pathlib import Path

from ..anchor.hash import keccak_hex
from ..core.constants import DEFAULT_LEDGER_PATH
from ..core.receipt import utc_now
from ..store.record import LedgerReference
from .client import LedgerClient


class FileLedger(LedgerClient):
    """Ledger backed by a JSONL file.

    Attributes:
        path: Path to the JSONL file
    """

    name = "file"

    def __init__(self, path: str = DEFAULT_LEDGER_PATH):
        super().__init__()
        self.path = Path(path)
        self._lock = threading.Lock()

    def connect(self) -> "FileLedger":
        self.path.parent.mkdir(parents=True, exist_ok=True)
        if not self.path.exists():
            self.path.touch()
        return super().connect()

    def _submit(self, subject_id, digest, kind, timestamp, uri) -> LedgerReference:
        with self._lock, open(self.path, "a+") as f:
            # Exclusive lock: the token id depends on the current line count
            fcntl.flock(f.fileno(), fcntl.LOCK_EX)
            try:
                f.seek(0)
                count = sum(1 for line in f if line.strip())
                token_id = count + 1
                entry = {
                    "token_id": token_id,
                    "block_number": token_id,
                    "subject_id": subject_id,
                    "digest": digest,
                    "kind": kind,
                    "timestamp": timestamp,
                    "uri": uri,
                    "recorded_at": utc_now(),
                }
                entry["tx_hash"] = keccak_hex(json.dumps(entry, sort_keys=True))
                f.write(json.dumps(entry, sort_keys=True) + "\n")
                f.flush()
            finally:
                fcntl.flock(f.fileno(), fcntl.LOCK_UN)
        return LedgerReference(tx_hash=entry["tx_hash"], block_number=token_id, token_id=token_id)

    def read_all(self) -> list[dict]:
        """Read all ledger entries."""
        entries = []
        if not self.path.exists():
            return entries

        with open(self.path, "r") as f:
            fcntl.flock(f.fileno(), fcntl.LOCK_SH)
            try:
                for line in f:
                    line = line.strip()
                    if line:
                        entries.append(json.loads(line))
            finally:
                fcntl.flock(f.fileno(), fcntl.LOCK_UN)

        return entries

    def _query(self, digest: str) -> list[LedgerReference]:
        return [
            LedgerReference(e["tx_hash"], e["block_number"], e["token_id"])
            for e in self.read_all()
            if e["digest"] == digest
        ]
