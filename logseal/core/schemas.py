"""Receipt schema definitions and validation.

Constants:
    RECEIPT_SCHEMAS: Schema dicts keyed by receipt_type
    REQUIRED_FIELDS: Fields required in all receipts

Functions:
    validate_receipt: Validate receipt against schema
"""
from .errors import ValidationError


REQUIRED_FIELDS = ["receipt_type", "ts", "tenant_id", "payload_hash"]


RECEIPT_SCHEMAS = {
    "canonicalize": {
        "kind": str,
        "entry_count": int,
        "digest": str,
        "byte_length": int,
    },
    "anchor": {
        "digest": str,
        "subject_id": str,
        "status": str,
        "ledger_reference": (dict, type(None)),
    },
    "sweep": {
        "processed": int,
        "succeeded": int,
        "failed": int,
        "skipped": int,
    },
    "verify": {
        "digest": str,
        "status": str,
        "verified": bool,
    },
    "anomaly": {
        "anomaly_type": str,
        "stage": str,
    },
}


def validate_receipt(receipt: dict) -> bool:
    """Validate receipt has required fields and matches schema.

    Args:
        receipt: Receipt dict to validate

    Returns:
        True if valid

    Raises:
        ValidationError: If a field is missing, mistyped, or the type is unknown
    """
    if not isinstance(receipt, dict):
        raise ValidationError("Receipt must be a dict")

    for field in REQUIRED_FIELDS:
        if field not in receipt:
            raise ValidationError(f"Missing required field: {field}")

    receipt_type = receipt["receipt_type"]
    if receipt_type not in RECEIPT_SCHEMAS:
        raise ValidationError(f"Unknown receipt_type: {receipt_type}")

    for field, expected in RECEIPT_SCHEMAS[receipt_type].items():
        if field not in receipt:
            raise ValidationError(f"{receipt_type} receipt missing field: {field}")
        if not isinstance(receipt[field], expected):
            raise ValidationError(
                f"{receipt_type} receipt field {field} has type "
                f"{type(receipt[field]).__name__}"
            )

    return True
