"""Verify command: check data against anchored digests."""
import json
import sys

import click

from .common import KIND_CHOICE, backends, load_config, load_entries
from .output import error_box, success_box


@click.command()
@click.argument('file', type=click.Path(exists=True), required=False)
@click.option('--kind', '-k', type=KIND_CHOICE, default=None, help='Entry kind')
@click.option('--digest', '-d', default=None, help='Verify a precomputed content digest')
def verify(file: str | None, kind: str | None, digest: str | None):
    """Verify FILE (or --digest) against the store and the ledger."""
    try:
        from logseal.pipeline import Verifier

        if (file is None) == (digest is None):
            error_box("Verify: USAGE", "Provide exactly one of FILE or --digest")
            sys.exit(2)
        if file is not None and kind is None:
            error_box("Verify: USAGE", "--kind is required with FILE")
            sys.exit(2)

        config = load_config()
        with backends(config) as (store, ledger):
            verifier = Verifier(store, ledger, config.tenant_id)
            if file is not None:
                result = verifier.verify(load_entries(file), kind)
            else:
                result = verifier.verify_digest(digest)

        rows = [
            ("Digest", result.digest),
            ("Status", result.status.value),
            ("Message", result.message),
        ]
        for ref in result.ledger_references:
            rows.append(("Tx", ref.tx_hash))
        if result.error:
            rows.append(("Error", result.error))

        if not result.verified:
            error_box(f"Verify: {result.status.value}", result.message)
            sys.exit(1)

        success_box(f"Verify: {result.status.value}", rows, "seal records list")
        sys.exit(0)

    except json.JSONDecodeError as e:
        error_box("Verify: FAILED", f"Invalid JSON: {e}")
        sys.exit(2)
    except Exception as e:
        error_box("Verify: FAILED", str(e))
        sys.exit(2)
