"""Record inspection commands."""
import sys

import click

from .common import backends, load_config
from .output import error_box, print_json, table


@click.group()
def records():
    """Inspect anchor records in the content store."""
    pass


@records.command('list')
@click.option('--subject', '-s', default=None, help='Filter by subject identity')
@click.option('--pending', is_flag=True, help='Only PENDING records, oldest first')
@click.option('--limit', '-n', default=20, help='Number of records to show')
def list_records(subject: str | None, pending: bool, limit: int):
    """List anchor records."""
    try:
        config = load_config()
        with backends(config) as (store, _ledger):
            if pending:
                found = store.list_unanchored(limit)
                if subject:
                    found = [r for r in found if r.subject_id == subject]
            elif subject:
                found = store.find_by_subject(subject, limit)
            else:
                found = store.list_recent(limit)
            stats = store.stats()

        if not found:
            click.echo("No records")
            sys.exit(0)

        click.echo(f"Showing {len(found)} of {stats['total']} records "
                   f"({stats['pending']} pending)\n")
        table(["Digest", "Subject", "Status", "Attempts", "Created"], [
            [r.digest[:16], (r.subject_id or "broadcast")[:18], r.status.value,
             str(r.attempts), r.created_at]
            for r in found
        ])
        sys.exit(0)

    except Exception as e:
        error_box("Records: FAILED", str(e))
        sys.exit(2)


@records.command('show')
@click.argument('digest')
def show(digest: str):
    """Show one record as JSON."""
    try:
        config = load_config()
        with backends(config) as (store, _ledger):
            record = store.find_by_digest(digest)

        if record is None:
            error_box("Records: NOT FOUND", f"No record for {digest[:16]}")
            sys.exit(1)

        print_json(record.to_dict())
        sys.exit(0)

    except Exception as e:
        error_box("Records: FAILED", str(e))
        sys.exit(2)
