"""Record transitions shared by every store backend.

A record moves PENDING -> ANCHORED once and never leaves ANCHORED.
"""
import logging

from ..anchor.hash import normalize_digest
from ..core.constants import LOG_KINDS
from ..core.errors import StoreInvariantViolation, ValidationError
from ..core.receipt import emit_receipt
from .record import AnchorRecord, LedgerReference

logger = logging.getLogger("logseal.store")


def check_reserve_args(digest: str, kind: str) -> str:
    """Validate reserve arguments and return the normalized digest."""
    if kind not in LOG_KINDS:
        raise ValidationError(f"Unknown log kind: {kind}")
    return normalize_digest(digest)


def check_limit(limit: int) -> None:
    if limit < 0:
        raise ValidationError(f"limit must be >= 0, got {limit}")


def transition_anchored(
    record: AnchorRecord,
    reference: LedgerReference,
) -> AnchorRecord | None:
    """Apply mark_anchored to a record.

    Returns:
        The updated record, or None when it is already ANCHORED with the
        same reference

    Raises:
        StoreInvariantViolation: Already ANCHORED with a different reference
    """
    if not record.is_anchored:
        return record.anchored(reference)
    if record.ledger_reference == reference:
        return None
    emit_receipt("anomaly", {
        "anomaly_type": "conflicting_anchor",
        "stage": "store",
        "digest": record.digest,
        "existing": record.ledger_reference.to_dict() if record.ledger_reference else None,
        "attempted": reference.to_dict(),
    })
    logger.error("digest %s already anchored at %s, refusing %s",
                 record.digest, record.ledger_reference, reference)
    raise StoreInvariantViolation(
        f"Digest {record.digest} already anchored with a different reference"
    )


def transition_failed(record: AnchorRecord, error: str) -> AnchorRecord | None:
    """Apply record_failure. Returns None for ANCHORED records (stale retry)."""
    if record.is_anchored:
        return None
    return record.failed(error)
