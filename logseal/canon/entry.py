"""Tagged log entry type."""
import copy
from dataclasses import dataclass
from types import MappingProxyType
from collections.abc import Mapping
from typing import Any

from ..core.errors import MalformedEntry, UnsupportedEntryKind
from .rules import RULES


@dataclass(frozen=True)
class LogEntry:
    """One telemetry sample, sensor reading, or command.

    The kind is always given explicitly. Fields are deep-copied on
    construction and exposed read-only, so later mutation of the source
    dict cannot change what gets hashed.
    """
    kind: str
    fields: Mapping[str, Any]

    def __post_init__(self):
        if self.kind not in RULES:
            raise UnsupportedEntryKind(self.kind)
        if not isinstance(self.fields, Mapping):
            raise MalformedEntry(
                f"{self.kind} entry must be a mapping, got {type(self.fields).__name__}"
            )
        frozen = MappingProxyType(copy.deepcopy(dict(self.fields)))
        object.__setattr__(self, "fields", frozen)

    @classmethod
    def from_dict(cls, kind: str, data: Mapping[str, Any]) -> "LogEntry":
        return cls(kind=kind, fields=data)

    def get(self, name: str, default=None):
        return self.fields.get(name, default)

    def __getitem__(self, name: str):
        return self.fields[name]

    def to_dict(self) -> dict:
        return copy.deepcopy(dict(self.fields))
