"""In-process ledger with failure injection.

Stands in for the external ledger in tests and demos. Tokens get
sequential ids and block numbers; tx hashes are Keccak-256 of the token
payload. Like a real chain it does not deduplicate: every accepted
submission mints a token.
"""
import json
import threading
import time

from ..anchor.hash import keccak_hex
from ..core.errors import LedgerPermanentFailure, LedgerTransientFailure, LedgerUnavailable
from ..store.record import LedgerReference
from .client import LedgerClient


class MemoryLedger(LedgerClient):
    """Simulated ledger.

    Attributes:
        submissions: Accepted submissions in order
        attempts: Every submit() call that reached the ledger
        latency: Seconds each submission blocks before completing
    """

    name = "memory"

    def __init__(self, latency: float = 0.0, start_block: int = 1):
        super().__init__()
        self.latency = latency
        self.submissions: list[dict] = []
        self.attempts = 0
        self._next_block = start_block
        self._available = True
        self._failures: list[tuple[bool, str]] = []
        self._lock = threading.Lock()

    def set_available(self, available: bool) -> None:
        """Toggle a simulated outage. Unavailable means transient failures."""
        with self._lock:
            self._available = available

    def fail_next(self, count: int = 1, permanent: bool = False, message: str | None = None) -> None:
        """Make the next `count` submissions fail."""
        default = "rejected by ledger" if permanent else "nonce too low"
        with self._lock:
            self._failures.extend([(permanent, message or default)] * count)

    def _submit(self, subject_id, digest, kind, timestamp, uri) -> LedgerReference:
        with self._lock:
            self.attempts += 1
            if not self._available:
                raise LedgerUnavailable("ledger endpoint unreachable")
            failure = self._failures.pop(0) if self._failures else None
        if failure is not None:
            permanent, message = failure
            if permanent:
                raise LedgerPermanentFailure(message)
            raise LedgerTransientFailure(message)

        if self.latency:
            time.sleep(self.latency)

        with self._lock:
            token_id = len(self.submissions) + 1
            block_number = self._next_block
            self._next_block += 1
            payload = {
                "token_id": token_id,
                "subject_id": subject_id,
                "digest": digest,
                "kind": kind,
                "timestamp": timestamp,
                "uri": uri,
            }
            tx_hash = keccak_hex(json.dumps(payload, sort_keys=True))
            self.submissions.append({**payload, "tx_hash": tx_hash, "block_number": block_number})
        return LedgerReference(tx_hash=tx_hash, block_number=block_number, token_id=token_id)

    def _query(self, digest: str) -> list[LedgerReference]:
        with self._lock:
            return [
                LedgerReference(s["tx_hash"], s["block_number"], s["token_id"])
                for s in self.submissions
                if s["digest"] == digest
            ]

    def submissions_for(self, digest: str) -> list[dict]:
        digest = digest.lower()
        if not digest.startswith("0x"):
            digest = "0x" + digest
        with self._lock:
            return [s for s in self.submissions if s["digest"] == digest]
