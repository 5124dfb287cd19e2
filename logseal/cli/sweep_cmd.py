"""Sweep command: retry PENDING records."""
import sys
import time

import click

from .common import backends, load_config
from .output import error_box, success_box, table


@click.command()
@click.option('--batch', '-n', type=int, default=None, help='Max records to retry')
def sweep(batch: int | None):
    """Retry ledger submission for PENDING records."""
    t0 = time.perf_counter()
    try:
        from logseal.pipeline import Sweeper

        config = load_config()
        with backends(config) as (store, ledger):
            report = Sweeper(store, ledger, config).sweep(batch)

        elapsed_ms = int((time.perf_counter() - t0) * 1000)
        rows = [
            ("Processed", str(report.processed)),
            ("Succeeded", str(report.succeeded)),
            ("Failed", str(report.failed)),
            ("Skipped", str(report.skipped)),
            ("Duration", f"{elapsed_ms}ms"),
        ]

        if report.failed:
            success_box("Sweep: FAILURES REMAIN", rows, "seal records list --pending")
            table(["Digest", "Permanent", "Error"], [
                [e["digest"][:16], "yes" if e["permanent"] else "no", e["error"][:40]]
                for e in report.errors
            ])
            sys.exit(1)

        success_box("Sweep: COMPLETE", rows, "seal records list")
        sys.exit(0)

    except Exception as e:
        error_box("Sweep: FAILED", str(e))
        sys.exit(2)
