"""Anchor record model."""
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum

from ..core.constants import LOG_KIND_DEVICE


class AnchorStatus(str, Enum):
    """Stored statuses are PENDING and ANCHORED. DUPLICATE is only returned."""
    PENDING = "PENDING"
    ANCHORED = "ANCHORED"
    DUPLICATE = "DUPLICATE"


def now_iso() -> str:
    """UTC timestamp with fixed microsecond width, so text order is time order."""
    return (
        datetime.now(timezone.utc)
        .isoformat(timespec="microseconds")
        .replace("+00:00", "Z")
    )


def parse_iso(value: str) -> datetime:
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


@dataclass(frozen=True)
class LedgerReference:
    """Where a digest landed on the ledger."""
    tx_hash: str
    block_number: int
    token_id: int | None = None

    def to_dict(self) -> dict:
        return {
            "tx_hash": self.tx_hash,
            "block_number": self.block_number,
            "token_id": self.token_id,
        }

    @classmethod
    def from_dict(cls, data: dict | None) -> "LedgerReference | None":
        if not data:
            return None
        return cls(
            tx_hash=data["tx_hash"],
            block_number=int(data["block_number"]),
            token_id=data.get("token_id"),
        )


@dataclass(frozen=True)
class AnchorRecord:
    """Persisted outcome of anchoring one digest.

    Attributes:
        digest: Hex SHA-256 of the canonical form
        subject_id: Device identity, or None for broadcast logs
        kind: Ledger log type (DEVICE_LOG or COMMAND_LOG)
        logged_at: Unix seconds submitted to the ledger
        uri: Optional pointer to the raw log
        status: PENDING or ANCHORED
        ledger_reference: Set once ANCHORED
        attempts: Failed ledger submissions so far
        last_error: Message of the latest failure
    """
    digest: str
    subject_id: str | None
    kind: str = LOG_KIND_DEVICE
    logged_at: int = 0
    uri: str = ""
    status: AnchorStatus = AnchorStatus.PENDING
    ledger_reference: LedgerReference | None = None
    created_at: str = field(default_factory=now_iso)
    updated_at: str = field(default_factory=now_iso)
    attempts: int = 0
    last_error: str | None = None

    @property
    def is_anchored(self) -> bool:
        return self.status == AnchorStatus.ANCHORED

    def anchored(self, reference: LedgerReference) -> "AnchorRecord":
        return replace(
            self,
            status=AnchorStatus.ANCHORED,
            ledger_reference=reference,
            updated_at=now_iso(),
            last_error=None,
        )

    def failed(self, error: str) -> "AnchorRecord":
        return replace(
            self,
            attempts=self.attempts + 1,
            last_error=error,
            updated_at=now_iso(),
        )

    def to_dict(self) -> dict:
        return {
            "digest": self.digest,
            "subject_id": self.subject_id,
            "kind": self.kind,
            "logged_at": self.logged_at,
            "uri": self.uri,
            "status": self.status.value,
            "ledger_reference": (
                self.ledger_reference.to_dict() if self.ledger_reference else None
            ),
            "created_at": self.created_at,
            "updated_at": self.updated_at,
            "attempts": self.attempts,
            "last_error": self.last_error,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "AnchorRecord":
        return cls(
            digest=data["digest"],
            subject_id=data.get("subject_id"),
            kind=data.get("kind", LOG_KIND_DEVICE),
            logged_at=int(data.get("logged_at", 0)),
            uri=data.get("uri") or "",
            status=AnchorStatus(data.get("status", AnchorStatus.PENDING.value)),
            ledger_reference=LedgerReference.from_dict(data.get("ledger_reference")),
            created_at=data["created_at"],
            updated_at=data.get("updated_at", data["created_at"]),
            attempts=int(data.get("attempts", 0)),
            last_error=data.get("last_error"),
        )


@dataclass(frozen=True)
class ReserveResult:
    record: AnchorRecord
    is_new: bool
