"""Anchor command: canonicalize, reserve, and submit a log file."""
import json
import sys
import time

import click

from .common import KIND_CHOICE, backends, load_config, load_entries
from .output import error_box, success_box


@click.command()
@click.argument('file', type=click.Path(exists=True))
@click.option('--kind', '-k', type=KIND_CHOICE, required=True, help='Entry kind')
@click.option('--subject', '-s', default=None, help='Device identity (0x + 64 hex); omit for broadcast')
@click.option('--uri', default='', help='Pointer to the raw log')
@click.option('--logged-at', type=int, default=None, help='Unix seconds (default: now)')
def anchor(file: str, kind: str, subject: str | None, uri: str, logged_at: int | None):
    """Anchor the entries in FILE."""
    t0 = time.perf_counter()
    try:
        from logseal.pipeline import AnchoringPipeline
        from logseal.store import AnchorStatus

        config = load_config()
        entries = load_entries(file)
        metadata = {"uri": uri}
        if logged_at is not None:
            metadata["logged_at"] = logged_at

        with backends(config) as (store, ledger):
            with AnchoringPipeline(store, ledger, config) as pipeline:
                result = pipeline.anchor(entries, subject_id=subject, metadata=metadata, kind=kind)

        elapsed_ms = int((time.perf_counter() - t0) * 1000)
        rows = [
            ("Digest", result.digest),
            ("Subject", result.subject_id or "broadcast"),
        ]
        if result.ledger_reference:
            rows.append(("Tx", result.ledger_reference.tx_hash))
            rows.append(("Block", str(result.ledger_reference.block_number)))
        rows.append(("Duration", f"{elapsed_ms}ms"))

        if result.status == AnchorStatus.PENDING:
            rows.append(("Error", result.error or ""))
            success_box("Anchor: PENDING", rows, "seal sweep")
            sys.exit(1)

        success_box(f"Anchor: {result.status.value}", rows, f"seal verify {file} --kind {kind}")
        sys.exit(0)

    except json.JSONDecodeError as e:
        error_box("Anchor: FAILED", f"Invalid JSON: {e}")
        sys.exit(2)
    except Exception as e:
        error_box("Anchor: FAILED", str(e))
        sys.exit(2)
