"""Core subpackage for logseal primitives.

Exports receipts, schemas, and the error taxonomy.
"""
from .errors import (
    EmptyInput,
    LedgerError,
    LedgerPermanentFailure,
    LedgerTransientFailure,
    LedgerUnavailable,
    MalformedEntry,
    MixedEntryKinds,
    NonMonotonicSequence,
    RecordNotFound,
    SealError,
    StoreError,
    StoreInvariantViolation,
    UnsupportedEntryKind,
    ValidationError,
)
from .receipt import dual_hash, emit_receipt, utc_now
from .schemas import RECEIPT_SCHEMAS, REQUIRED_FIELDS, validate_receipt

__all__ = [
    # Receipt primitives
    "dual_hash",
    "emit_receipt",
    "utc_now",
    # Schemas
    "RECEIPT_SCHEMAS",
    "REQUIRED_FIELDS",
    "validate_receipt",
    # Errors
    "SealError",
    "ValidationError",
    "EmptyInput",
    "NonMonotonicSequence",
    "UnsupportedEntryKind",
    "MixedEntryKinds",
    "MalformedEntry",
    "LedgerError",
    "LedgerTransientFailure",
    "LedgerUnavailable",
    "LedgerPermanentFailure",
    "StoreError",
    "StoreInvariantViolation",
    "RecordNotFound",
]
