"""Digest functions and device identity derivation.

Two algorithms:
    sha256: generic content digest, used for local dedup and record identity
    keccak256: ledger-native digest, used for values derived on the ledger side

Both return 32 raw bytes. Hex helpers give the caller-facing forms: plain
lowercase hex for content digests, 0x-prefixed hex for ledger values.
"""
import hashlib
import re
import struct
import unicodedata

from Crypto.Hash import keccak

from ..core.constants import ALGO_KECCAK256, ALGO_SHA256, DIGEST_SIZE
from ..core.errors import ValidationError

_HEX = re.compile(r"[0-9a-f]+")


def _keccak256(data: bytes) -> bytes:
    k = keccak.new(digest_bits=256)
    k.update(data)
    return k.digest()


def _sha256(data: bytes) -> bytes:
    return hashlib.sha256(data).digest()


ALGORITHMS = {
    ALGO_SHA256: _sha256,
    ALGO_KECCAK256: _keccak256,
}


def digest(data: bytes, algorithm: str = ALGO_SHA256) -> bytes:
    """Compute a 32-byte digest of data.

    Args:
        data: Bytes to hash
        algorithm: "sha256" or "keccak256"

    Returns:
        32 raw digest bytes

    Raises:
        ValueError: Unknown algorithm
    """
    try:
        fn = ALGORITHMS[algorithm]
    except KeyError:
        raise ValueError(f"Unknown digest algorithm: {algorithm}") from None
    if isinstance(data, str):
        data = data.encode("utf-8")
    return fn(data)


def content_digest(canonical: bytes) -> str:
    """Hex SHA-256 of canonical bytes (64 chars, no prefix)."""
    return digest(canonical, ALGO_SHA256).hex()


def keccak_hex(data: bytes | str) -> str:
    """0x-prefixed Keccak-256 hex."""
    return "0x" + digest(data, ALGO_KECCAK256).hex()


def normalize_digest(value: str) -> str:
    """Lowercase 64-char hex form of a digest given with or without 0x.

    Raises:
        ValidationError: Not a 32-byte hex string
    """
    if not isinstance(value, str):
        raise ValidationError(f"Digest must be a hex string, got {type(value).__name__}")
    text = value.lower()
    if text.startswith("0x"):
        text = text[2:]
    if len(text) != DIGEST_SIZE * 2:
        raise ValidationError(f"Digest must be {DIGEST_SIZE} bytes, got {len(text) // 2}")
    if not _HEX.fullmatch(text):
        raise ValidationError(f"Digest is not valid hex: {value}")
    return text


def ledger_digest(digest_hex: str) -> str:
    """bytes32 form of a content digest for the ledger data model."""
    return "0x" + normalize_digest(digest_hex)


def _length_delimited(*fields: str) -> bytes:
    out = bytearray()
    for field in fields:
        encoded = unicodedata.normalize("NFC", field).encode("utf-8")
        out += struct.pack(">I", len(encoded))
        out += encoded
    return bytes(out)


def derive_device_identity(
    manufacturer: str,
    model: str,
    serial_number: str,
    hardware_nonce: str,
) -> str:
    """Derive the opaque device identifier.

    Each field is NFC-normalized, UTF-8 encoded, and prefixed with its
    4-byte big-endian length, so no two distinct tuples share an encoding.

    Returns:
        0x-prefixed 32-byte Keccak-256 hex

    Raises:
        ValidationError: A field is empty or not a string
    """
    fields = {
        "manufacturer": manufacturer,
        "model": model,
        "serial_number": serial_number,
        "hardware_nonce": hardware_nonce,
    }
    for name, value in fields.items():
        if not isinstance(value, str) or not value:
            raise ValidationError(f"{name} must be a non-empty string")
    return keccak_hex(_length_delimited(manufacturer, model, serial_number, hardware_nonce))


def is_subject_id(value: str) -> bool:
    """True for a 0x-prefixed 32-byte hex identifier."""
    if not isinstance(value, str) or not value.startswith("0x"):
        return False
    try:
        normalize_digest(value)
    except ValidationError:
        return False
    return True
