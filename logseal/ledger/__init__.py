"""Ledger collaborator subpackage.

LedgerClient defines submit/query with an explicit connect/close lifecycle.
MemoryLedger simulates the external ledger; FileLedger persists to JSONL.
"""
from .client import LedgerClient
from .file import FileLedger
from .memory import MemoryLedger

__all__ = [
    "LedgerClient",
    "MemoryLedger",
    "FileLedger",
]
