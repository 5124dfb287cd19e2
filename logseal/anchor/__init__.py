"""Hashing subpackage: content digests, ledger digests, device identity."""
from .hash import (
    ALGORITHMS,
    content_digest,
    derive_device_identity,
    digest,
    is_subject_id,
    keccak_hex,
    ledger_digest,
    normalize_digest,
)

__all__ = [
    "ALGORITHMS",
    "digest",
    "content_digest",
    "keccak_hex",
    "ledger_digest",
    "normalize_digest",
    "derive_device_identity",
    "is_subject_id",
]
