"""Canonicalization subpackage.

Turns log entries into deterministic bytes ready for hashing.
"""
from .canonicalize import (
    CanonicalForm,
    canonical_form,
    canonicalize,
    canonicalize_entry,
    check_monotonic,
    coerce_entries,
    round_half_away,
    truncate,
)
from .entry import LogEntry
from .rules import RULES, FieldRule, KindRules

__all__ = [
    "LogEntry",
    "CanonicalForm",
    "canonicalize",
    "canonical_form",
    "canonicalize_entry",
    "coerce_entries",
    "check_monotonic",
    "round_half_away",
    "truncate",
    "RULES",
    "FieldRule",
    "KindRules",
]
