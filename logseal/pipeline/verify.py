"""Verification: does this data match something anchored?

The verifier canonicalizes and hashes exactly as ingestion does, then looks
the digest up in the local store first and on the ledger second.
"""
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from ..anchor.hash import content_digest, ledger_digest, normalize_digest
from ..canon import canonical_form
from ..core.receipt import emit_receipt
from ..store.record import AnchorRecord, LedgerReference

logger = logging.getLogger("logseal.verify")


class VerifyStatus(str, Enum):
    MATCHED = "MATCHED"
    MULTIPLE_MATCHES = "MULTIPLE_MATCHES"
    FOUND_ON_CHAIN = "FOUND_ON_CHAIN"
    NO_MATCH = "NO_MATCH"


@dataclass
class VerifyResult:
    verified: bool
    status: VerifyStatus
    digest: str
    message: str
    records: list[AnchorRecord] = field(default_factory=list)
    ledger_references: list[LedgerReference] = field(default_factory=list)
    error: str | None = None

    def to_dict(self) -> dict:
        return {
            "verified": self.verified,
            "status": self.status.value,
            "digest": self.digest,
            "message": self.message,
            "records": [r.to_dict() for r in self.records],
            "ledger_references": [r.to_dict() for r in self.ledger_references],
            "error": self.error,
        }


class Verifier:
    """Checks submitted data against the store and the ledger.

    Args:
        store: Content store used by the pipeline
        ledger: Connected LedgerClient
        tenant_id: Tenant for emitted receipts
    """

    def __init__(self, store, ledger, tenant_id: str = "default"):
        self.store = store
        self.ledger = ledger
        self.tenant_id = tenant_id

    def verify(self, entries: Any, kind: str | None = None) -> VerifyResult:
        """Verify entries against anchored digests.

        Raises:
            ValidationError: Input rejected by the canonicalizer
        """
        form = canonical_form(entries, kind)
        return self.verify_digest(content_digest(form.data))

    def verify_digest(self, digest_hex: str) -> VerifyResult:
        """Look up an already-computed content digest."""
        digest = normalize_digest(digest_hex)
        result = self._lookup(digest)
        emit_receipt("verify", {
            "digest": digest,
            "status": result.status.value,
            "verified": result.verified,
            "record_count": len(result.records),
            "ledger_reference_count": len(result.ledger_references),
        }, self.tenant_id)
        return result

    def _lookup(self, digest: str) -> VerifyResult:
        records = self.store.find_all_by_digest(digest)

        if len(records) == 1:
            record = records[0]
            return VerifyResult(
                verified=True,
                status=VerifyStatus.MATCHED,
                digest=digest,
                message=f"Digest matches a record in state {record.status.value}",
                records=records,
                ledger_references=[record.ledger_reference] if record.ledger_reference else [],
            )

        if len(records) > 1:
            # Should be impossible under atomic reserve; surfaced, not resolved
            logger.error("%d records share digest %s", len(records), digest)
            emit_receipt("anomaly", {
                "anomaly_type": "multiple_matches",
                "stage": "verify",
                "digest": digest,
                "count": len(records),
            }, self.tenant_id)
            return VerifyResult(
                verified=True,
                status=VerifyStatus.MULTIPLE_MATCHES,
                digest=digest,
                message=f"Digest matches {len(records)} records",
                records=records,
                ledger_references=[r.ledger_reference for r in records if r.ledger_reference],
            )

        try:
            references = self.ledger.query(ledger_digest(digest))
        except Exception as e:
            logger.warning("ledger query failed for %s: %s", digest, e)
            return VerifyResult(
                verified=False,
                status=VerifyStatus.NO_MATCH,
                digest=digest,
                message="Not found locally; ledger query failed",
                error=str(e),
            )

        if references:
            return VerifyResult(
                verified=True,
                status=VerifyStatus.FOUND_ON_CHAIN,
                digest=digest,
                message="Not found locally; digest is recorded on the ledger",
                ledger_references=references,
            )

        return VerifyResult(
            verified=False,
            status=VerifyStatus.NO_MATCH,
            digest=digest,
            message="No anchored record matches this data",
        )
