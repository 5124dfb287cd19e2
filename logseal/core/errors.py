"""Error taxonomy.

ValidationError family is raised synchronously to callers before anything
is persisted. LedgerError family is caught by the pipeline and the sweeper
and only ever reported. StoreError family signals a broken store contract.
"""


class SealError(Exception):
    """Base class for every logseal error."""
    pass


class ValidationError(SealError):
    """Input rejected before any persistence."""
    pass


class EmptyInput(ValidationError):
    pass


class NonMonotonicSequence(ValidationError):
    """Timestamps are not strictly increasing for a kind that requires it."""

    def __init__(self, index: int, previous, current):
        self.index = index
        self.previous = previous
        self.current = current
        super().__init__(
            f"t_ms must be strictly increasing: entry {index} has {current} "
            f"after {previous}"
        )


class UnsupportedEntryKind(ValidationError):
    def __init__(self, kind):
        self.kind = kind
        super().__init__(f"Unsupported entry kind: {kind!r}")


class MixedEntryKinds(ValidationError):
    pass


class MalformedEntry(ValidationError):
    pass


class LedgerError(SealError):
    """Ledger submission or query failed."""

    permanent = False


class LedgerTransientFailure(LedgerError):
    """Network, fee, or nonce problem. Recovered by a later sweep."""
    pass


class LedgerUnavailable(LedgerTransientFailure):
    """Client not connected or ledger marked unreachable."""
    pass


class LedgerPermanentFailure(LedgerError):
    """Retrying will not help until an operator intervenes."""

    permanent = True


class StoreError(SealError):
    pass


class StoreInvariantViolation(StoreError):
    """Store contents contradict the record lifecycle. Never auto-resolved."""
    pass


class RecordNotFound(StoreError, LookupError):
    def __init__(self, digest: str):
        self.digest = digest
        super().__init__(f"No anchor record for digest {digest}")
