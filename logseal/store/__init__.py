"""Content store subpackage.

Maps content digests to anchor records. Two backends share one method set:
ContentStore (JSONL event log) and SqliteContentStore.
"""
from .jsonl import ContentStore
from .record import AnchorRecord, AnchorStatus, LedgerReference, ReserveResult
from .sqlite import SqliteContentStore

BACKENDS = {
    "jsonl": ContentStore,
    "sqlite": SqliteContentStore,
}


def open_store(backend: str, path: str):
    """Open a content store by backend name ("jsonl" or "sqlite")."""
    try:
        cls = BACKENDS[backend]
    except KeyError:
        raise ValueError(f"Unknown store backend: {backend}") from None
    return cls(path)


__all__ = [
    "ContentStore",
    "SqliteContentStore",
    "AnchorRecord",
    "AnchorStatus",
    "LedgerReference",
    "ReserveResult",
    "BACKENDS",
    "open_store",
]
