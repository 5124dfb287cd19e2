"""logseal configuration.

All settings can be overridden via environment variables with the
LOGSEAL_ prefix.
"""
import os
from dataclasses import dataclass

from .core.constants import (
    BACKOFF_BASE_S,
    BACKOFF_MAX_S,
    DEFAULT_LEDGER_PATH,
    DEFAULT_STORE_PATH,
    PIPELINE_DEFAULT_WORKERS,
    SWEEP_DEFAULT_BATCH,
    SWEEP_DEFAULT_INTERVAL_S,
    SWEEP_DEFAULT_WORKERS,
    SWEEP_GRACE_S,
)

STORE_BACKENDS = ("jsonl", "sqlite")


@dataclass
class SealConfig:
    """Pipeline, store, and sweeper configuration."""

    # Storage
    store_backend: str = "jsonl"
    store_path: str = DEFAULT_STORE_PATH
    ledger_path: str = DEFAULT_LEDGER_PATH

    # Sweeper
    sweep_batch_size: int = SWEEP_DEFAULT_BATCH
    sweep_max_workers: int = SWEEP_DEFAULT_WORKERS
    sweep_interval_seconds: float = SWEEP_DEFAULT_INTERVAL_S
    sweep_grace_seconds: float = SWEEP_GRACE_S
    backoff_base_seconds: float = BACKOFF_BASE_S
    backoff_max_seconds: float = BACKOFF_MAX_S

    # Pipeline
    pipeline_max_workers: int = PIPELINE_DEFAULT_WORKERS

    # Receipts
    tenant_id: str = "default"

    @classmethod
    def from_env(cls) -> "SealConfig":
        """Load configuration from environment variables."""
        config = cls()

        if "LOGSEAL_STORE_BACKEND" in os.environ:
            config.store_backend = os.environ["LOGSEAL_STORE_BACKEND"].lower()
        if "LOGSEAL_STORE_PATH" in os.environ:
            config.store_path = os.environ["LOGSEAL_STORE_PATH"]
        if "LOGSEAL_LEDGER_PATH" in os.environ:
            config.ledger_path = os.environ["LOGSEAL_LEDGER_PATH"]

        if "LOGSEAL_SWEEP_BATCH_SIZE" in os.environ:
            config.sweep_batch_size = int(os.environ["LOGSEAL_SWEEP_BATCH_SIZE"])
        if "LOGSEAL_SWEEP_MAX_WORKERS" in os.environ:
            config.sweep_max_workers = int(os.environ["LOGSEAL_SWEEP_MAX_WORKERS"])
        if "LOGSEAL_SWEEP_INTERVAL_SECONDS" in os.environ:
            config.sweep_interval_seconds = float(os.environ["LOGSEAL_SWEEP_INTERVAL_SECONDS"])
        if "LOGSEAL_SWEEP_GRACE_SECONDS" in os.environ:
            config.sweep_grace_seconds = float(os.environ["LOGSEAL_SWEEP_GRACE_SECONDS"])
        if "LOGSEAL_BACKOFF_BASE_SECONDS" in os.environ:
            config.backoff_base_seconds = float(os.environ["LOGSEAL_BACKOFF_BASE_SECONDS"])
        if "LOGSEAL_BACKOFF_MAX_SECONDS" in os.environ:
            config.backoff_max_seconds = float(os.environ["LOGSEAL_BACKOFF_MAX_SECONDS"])

        if "LOGSEAL_PIPELINE_MAX_WORKERS" in os.environ:
            config.pipeline_max_workers = int(os.environ["LOGSEAL_PIPELINE_MAX_WORKERS"])

        if "LOGSEAL_TENANT_ID" in os.environ:
            config.tenant_id = os.environ["LOGSEAL_TENANT_ID"]

        return config

    def validate(self) -> list[str]:
        """Validate configuration. Returns list of errors."""
        errors = []

        if self.store_backend not in STORE_BACKENDS:
            errors.append(f"store_backend must be one of {STORE_BACKENDS}")
        if not self.store_path:
            errors.append("store_path is required")
        if self.sweep_batch_size < 1:
            errors.append("sweep_batch_size must be >= 1")
        if self.sweep_max_workers < 1:
            errors.append("sweep_max_workers must be >= 1")
        if self.pipeline_max_workers < 1:
            errors.append("pipeline_max_workers must be >= 1")
        if self.sweep_interval_seconds <= 0:
            errors.append("sweep_interval_seconds must be > 0")
        if self.sweep_grace_seconds < 0:
            errors.append("sweep_grace_seconds must be >= 0")
        if self.backoff_base_seconds < 0:
            errors.append("backoff_base_seconds must be >= 0")
        if self.backoff_max_seconds < self.backoff_base_seconds:
            errors.append("backoff_max_seconds must be >= backoff_base_seconds")

        return errors
