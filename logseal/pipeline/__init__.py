"""Anchoring, reconciliation, and verification.

AnchoringPipeline ingests entries; Sweeper retries PENDING records;
Verifier answers whether data matches an anchored digest.
"""
from .anchor import AnchoringPipeline, AnchorResult, SubmitOutcome, submit_record
from .sweep import Sweeper, SweepReport
from .verify import Verifier, VerifyResult, VerifyStatus

__all__ = [
    "AnchoringPipeline",
    "AnchorResult",
    "SubmitOutcome",
    "submit_record",
    "Sweeper",
    "SweepReport",
    "Verifier",
    "VerifyResult",
    "VerifyStatus",
]
