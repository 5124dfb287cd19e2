"""Ledger collaborator interface.

The ledger is an external append-only service. Clients are injected into
the pipeline, sweeper, and verifier, and have an explicit lifecycle:
connect() before use, close() when done (or use as a context manager).
"""
from ..anchor.hash import is_subject_id, normalize_digest
from ..core.constants import LOG_KINDS
from ..core.errors import LedgerPermanentFailure, LedgerUnavailable
from ..store.record import LedgerReference


class LedgerClient:
    """Base class for ledger clients.

    Subclasses implement _submit() and _query(). submit() and query()
    check the connection and validate arguments first.
    """

    name = "ledger"

    def __init__(self):
        self._connected = False

    @property
    def connected(self) -> bool:
        return self._connected

    def connect(self) -> "LedgerClient":
        self._connected = True
        return self

    def close(self) -> None:
        self._connected = False

    def __enter__(self) -> "LedgerClient":
        return self.connect()

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def _require_connected(self) -> None:
        if not self._connected:
            raise LedgerUnavailable(f"{self.name} client is not connected")

    def submit(
        self,
        subject_id: str,
        digest: str,
        kind: str,
        timestamp: int,
        uri: str = "",
    ) -> LedgerReference:
        """Record a digest on the ledger.

        Args:
            subject_id: 0x-prefixed 32-byte device identity
            digest: 0x-prefixed bytes32 content digest
            kind: DEVICE_LOG or COMMAND_LOG
            timestamp: Unix seconds
            uri: Optional raw-log pointer

        Returns:
            LedgerReference of the new token

        Raises:
            LedgerTransientFailure: Retry later
            LedgerPermanentFailure: Malformed subject, digest, or kind
        """
        self._require_connected()
        if not is_subject_id(subject_id):
            raise LedgerPermanentFailure(f"Invalid subject identity: {subject_id!r}")
        if kind not in LOG_KINDS:
            raise LedgerPermanentFailure(f"Invalid log kind: {kind!r}")
        if not is_subject_id(digest):
            raise LedgerPermanentFailure(f"Invalid bytes32 digest: {digest!r}")
        return self._submit(subject_id.lower(), digest.lower(), kind, int(timestamp), uri or "")

    def query(self, digest: str) -> list[LedgerReference]:
        """All references recorded for digest. Read-only and idempotent."""
        self._require_connected()
        return self._query("0x" + normalize_digest(digest))

    def _submit(self, subject_id, digest, kind, timestamp, uri) -> LedgerReference:
        raise NotImplementedError

    def _query(self, digest: str) -> list[LedgerReference]:
        raise NotImplementedError
