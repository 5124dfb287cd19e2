"""Core receipt primitives shared by every logseal module.

Functions:
    dual_hash: SHA256:BLAKE3 dual-hash format
    emit_receipt: Emit receipt with required fields to stdout
    utc_now: ISO8601 UTC timestamp with Z suffix
"""
import hashlib
import json
from datetime import datetime, timezone

import blake3


def utc_now() -> str:
    """Return current UTC time as ISO8601 with a trailing Z."""
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def dual_hash(data: bytes | str | dict) -> str:
    """Compute dual hash in format 'sha256hex:blake3hex'.

    Pure function with no side effects.

    Args:
        data: Bytes, string, or dict to hash

    Returns:
        String in format 'sha256hex:blake3hex' (both 64 hex chars)
    """
    if isinstance(data, dict):
        data = json.dumps(data, sort_keys=True, separators=(",", ":"), default=str)
    if isinstance(data, str):
        data = data.encode("utf-8")

    sha256_hex = hashlib.sha256(data).hexdigest()
    blake3_hex = blake3.blake3(data).hexdigest()

    return f"{sha256_hex}:{blake3_hex}"


def emit_receipt(receipt_type: str, data: dict, tenant_id: str = "default") -> dict:
    """Emit a receipt with standard required fields.

    Prints JSON to stdout with flush=True.

    Args:
        receipt_type: Type of receipt (canonicalize, anchor, sweep, verify, anomaly)
        data: Receipt payload data
        tenant_id: Tenant identifier (default: "default")

    Returns:
        Complete receipt dict with receipt_type, ts, tenant_id, payload_hash
    """
    tenant_id = data.get("tenant_id", tenant_id)

    payload_bytes = json.dumps(data, sort_keys=True, default=str).encode("utf-8")
    payload_hash = dual_hash(payload_bytes)

    receipt = {
        "receipt_type": receipt_type,
        "ts": utc_now(),
        "tenant_id": tenant_id,
        "payload_hash": payload_hash,
        **data
    }

    print(json.dumps(receipt, sort_keys=True, default=str), flush=True)

    return receipt
