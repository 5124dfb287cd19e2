"""
logseal - Tamper-evident anchoring for device telemetry

Log entries are canonicalized to fixed bytes, hashed, deduplicated by
content digest, and anchored to an append-only ledger. A sweeper retries
what the ledger did not accept; a verifier answers whether data matches
something anchored.
"""

__version__ = "0.1.0"

from logseal.anchor.hash import content_digest, derive_device_identity, ledger_digest
from logseal.canon import LogEntry, canonical_form, canonicalize
from logseal.config import SealConfig
from logseal.core.receipt import dual_hash, emit_receipt
from logseal.core.schemas import RECEIPT_SCHEMAS, validate_receipt
from logseal.ledger import FileLedger, LedgerClient, MemoryLedger
from logseal.pipeline import (
    AnchoringPipeline,
    AnchorResult,
    Sweeper,
    SweepReport,
    Verifier,
    VerifyResult,
    VerifyStatus,
)
from logseal.store import AnchorRecord, AnchorStatus, ContentStore, SqliteContentStore, open_store

__all__ = [
    "LogEntry",
    "canonicalize",
    "canonical_form",
    "content_digest",
    "ledger_digest",
    "derive_device_identity",
    "AnchorRecord",
    "AnchorStatus",
    "ContentStore",
    "SqliteContentStore",
    "open_store",
    "LedgerClient",
    "MemoryLedger",
    "FileLedger",
    "AnchoringPipeline",
    "AnchorResult",
    "Sweeper",
    "SweepReport",
    "Verifier",
    "VerifyResult",
    "VerifyStatus",
    "SealConfig",
    "dual_hash",
    "emit_receipt",
    "validate_receipt",
    "RECEIPT_SCHEMAS",
    "__version__",
]
