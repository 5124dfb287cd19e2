"""Deterministic canonical form for log entries.

Output is a whitespace-free JSON array, UTF-8 encoded. Field order comes
from the per-kind rule table, numbers are rounded on their shortest decimal
representation (round half away from zero) and printed in plain notation
with trailing zeros stripped. Free-form mappings are emitted with sorted
keys. Strings are NFC-normalized and ASCII-escaped.
"""
import json
import math
import unicodedata
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Context, Decimal, InvalidOperation
from collections.abc import Iterable, Mapping
from typing import Any

from ..core.errors import (
    EmptyInput,
    MalformedEntry,
    MixedEntryKinds,
    NonMonotonicSequence,
    UnsupportedEntryKind,
)
from .entry import LogEntry
from .rules import (
    ANY,
    DECIMAL,
    INTEGER,
    LIST,
    MAPPING,
    RULES,
    TEXT,
    TIMESTAMP,
    FieldRule,
    KindRules,
)

# Wide enough that quantize never overflows for telemetry magnitudes
_CONTEXT = Context(prec=60)


@dataclass(frozen=True)
class CanonicalForm:
    """Canonical bytes plus the kind and entry count they were built from."""
    kind: str
    data: bytes
    entry_count: int

    def __len__(self) -> int:
        return len(self.data)

    def text(self) -> str:
        return self.data.decode("utf-8")


def _to_decimal(value: Any, field: str) -> Decimal:
    if isinstance(value, bool) or not isinstance(value, (int, float, Decimal)):
        raise MalformedEntry(f"{field}: expected a number, got {type(value).__name__}")
    if isinstance(value, int):
        return Decimal(value)
    if isinstance(value, float):
        if not math.isfinite(value):
            raise MalformedEntry(f"{field}: non-finite number {value!r}")
        return Decimal(repr(value))
    if not value.is_finite():
        raise MalformedEntry(f"{field}: non-finite number {value!r}")
    return value


def _plain(value: Decimal) -> str:
    if value.is_zero():
        return "0"
    return format(value.normalize(_CONTEXT), "f")


def round_half_away(value: Any, places: int, field: str = "value") -> Decimal:
    """Round to `places` decimals, ties away from zero."""
    exponent = Decimal(1).scaleb(-places)
    try:
        return _to_decimal(value, field).quantize(
            exponent, rounding=ROUND_HALF_UP, context=_CONTEXT
        )
    except InvalidOperation as e:
        raise MalformedEntry(f"{field}: cannot round {value!r}") from e


def truncate(value: Any, field: str = "value") -> int:
    """Truncate toward zero."""
    return int(_to_decimal(value, field))


def _text(value: str) -> str:
    return json.dumps(unicodedata.normalize("NFC", value), ensure_ascii=True)


def _encode(value: Any, field: str) -> str:
    """Encode a free-form value."""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float, Decimal)):
        return _plain(_to_decimal(value, field))
    if isinstance(value, str):
        return _text(value)
    if isinstance(value, Mapping):
        pairs = []
        for key, item in value.items():
            if not isinstance(key, str):
                raise MalformedEntry(f"{field}: mapping keys must be strings")
            pairs.append((unicodedata.normalize("NFC", key), item))
        pairs.sort(key=lambda p: p[0])
        body = ",".join(f"{_text(k)}:{_encode(v, f'{field}.{k}')}" for k, v in pairs)
        return "{" + body + "}"
    if isinstance(value, (list, tuple)):
        return "[" + ",".join(_encode(v, f"{field}[]") for v in value) + "]"
    raise MalformedEntry(f"{field}: unsupported value type {type(value).__name__}")


def _encode_field(rule: FieldRule, value: Any, path: str) -> str:
    if rule.type == DECIMAL:
        return _plain(round_half_away(value, rule.places, path))
    if rule.type == INTEGER:
        return str(truncate(value, path))
    if rule.type == TEXT:
        if not isinstance(value, str):
            raise MalformedEntry(f"{path}: expected text, got {type(value).__name__}")
        return _text(value)
    if rule.type == TIMESTAMP:
        if isinstance(value, str):
            return _text(value)
        return str(truncate(value, path))
    if rule.type == LIST:
        if not isinstance(value, (list, tuple)):
            raise MalformedEntry(f"{path}: expected a list, got {type(value).__name__}")
        return _encode(value, path)
    if rule.type == MAPPING:
        if not isinstance(value, Mapping):
            raise MalformedEntry(f"{path}: expected a mapping, got {type(value).__name__}")
        if rule.fields:
            return _encode_object(rule.fields, value, path)
        return _encode(value, path)
    if rule.type == ANY:
        return _encode(value, path)
    raise MalformedEntry(f"{path}: unknown rule type {rule.type}")


def _encode_object(rules: Iterable[FieldRule], data: Mapping, prefix: str = "") -> str:
    parts = []
    for rule in rules:
        value = data.get(rule.name)
        if value is None:
            continue
        path = f"{prefix}.{rule.name}" if prefix else rule.name
        parts.append(f"{_text(rule.name)}:{_encode_field(rule, value, path)}")
    return "{" + ",".join(parts) + "}"


def canonicalize_entry(entry: LogEntry) -> str:
    """Canonical JSON text of a single entry."""
    return _encode_object(RULES[entry.kind].fields, entry.fields)


def coerce_entries(entries: Any, kind: str | None = None) -> list[LogEntry]:
    """Normalize caller input into a non-empty, single-kind list of LogEntry.

    Accepts a LogEntry, a mapping, or a sequence of either. Raw mappings
    need an explicit kind.

    Raises:
        EmptyInput: No entries
        UnsupportedEntryKind: Unknown kind, or raw mappings without a kind
        MixedEntryKinds: Entries of more than one kind
        MalformedEntry: Input that is neither a mapping nor a sequence
    """
    if kind is not None and kind not in RULES:
        raise UnsupportedEntryKind(kind)

    if isinstance(entries, (LogEntry, Mapping)):
        entries = [entries]
    elif isinstance(entries, (str, bytes)) or not isinstance(entries, Iterable):
        raise MalformedEntry(f"Expected log entries, got {type(entries).__name__}")

    result = []
    for item in entries:
        if isinstance(item, LogEntry):
            result.append(item)
        elif isinstance(item, Mapping):
            if kind is None:
                raise UnsupportedEntryKind(None)
            result.append(LogEntry(kind, item))
        else:
            raise MalformedEntry(f"Log entry must be a mapping, got {type(item).__name__}")

    if not result:
        raise EmptyInput("Log entries must be a non-empty sequence")

    kinds = {e.kind for e in result}
    if kind is not None:
        kinds.add(kind)
    if len(kinds) > 1:
        raise MixedEntryKinds(f"Entries mix kinds: {sorted(kinds)}")

    return result


def check_monotonic(entries: list[LogEntry], rules: KindRules) -> None:
    """Raise NonMonotonicSequence unless the declared field strictly increases.

    Compared after truncation, so the check agrees with the canonical form.
    """
    field = rules.monotonic_field
    if field is None:
        return
    previous = None
    for index, entry in enumerate(entries):
        raw = entry.get(field)
        if raw is None:
            raise MalformedEntry(f"entry {index}: {field} is required for {rules.kind}")
        current = truncate(raw, field)
        if previous is not None and current <= previous:
            raise NonMonotonicSequence(index, previous, current)
        previous = current


def canonical_form(entries: Any, kind: str | None = None) -> CanonicalForm:
    """Build the CanonicalForm for entries. See canonicalize()."""
    items = coerce_entries(entries, kind)
    rules = RULES[items[0].kind]
    check_monotonic(items, rules)
    body = ",".join(_encode_object(rules.fields, e.fields) for e in items)
    return CanonicalForm(
        kind=rules.kind,
        data=("[" + body + "]").encode("utf-8"),
        entry_count=len(items),
    )


def canonicalize(entries: Any, kind: str | None = None) -> bytes:
    """Canonical bytes for one entry or an ordered sequence of entries.

    Args:
        entries: LogEntry, mapping, or sequence of either
        kind: Entry kind, required when entries are raw mappings

    Returns:
        UTF-8 bytes of the whitespace-free canonical JSON array
    """
    return canonical_form(entries, kind).data
