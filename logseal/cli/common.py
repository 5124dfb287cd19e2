"""Helpers shared by commands: input files and configured backends."""
import json
from contextlib import contextmanager
from pathlib import Path

import click

from logseal.config import SealConfig
from logseal.core.constants import ENTRY_KINDS
from logseal.core.errors import SealError

KIND_CHOICE = click.Choice(list(ENTRY_KINDS))


def load_entries(file: str):
    """Read entries from a .jsonl file (one per line) or a JSON object/array."""
    path = Path(file)
    with open(path) as f:
        if path.suffix == ".jsonl":
            return [json.loads(line) for line in f if line.strip()]
        return json.load(f)


def load_config() -> SealConfig:
    config = SealConfig.from_env()
    errors = config.validate()
    if errors:
        raise SealError("; ".join(errors))
    return config


@contextmanager
def backends(config: SealConfig):
    """Yield (store, ledger) opened from config; closed on exit."""
    from logseal.ledger import FileLedger
    from logseal.store import open_store

    store = open_store(config.store_backend, config.store_path)
    try:
        with FileLedger(config.ledger_path) as ledger:
            yield store, ledger
    finally:
        store.close()
