"""Canonical form command."""
import json
import sys

import click

from .common import KIND_CHOICE, load_entries
from .output import error_box, print_json, success_box


@click.command()
@click.argument('file', type=click.Path(exists=True))
@click.option('--kind', '-k', type=KIND_CHOICE, required=True, help='Entry kind')
@click.option('--json', 'as_json', is_flag=True, help='Print canonical text and digest as JSON')
def canon(file: str, kind: str, as_json: bool):
    """Print the canonical form and content digest of FILE."""
    try:
        from logseal.anchor.hash import content_digest
        from logseal.canon import canonical_form

        form = canonical_form(load_entries(file), kind)
        digest = content_digest(form.data)

        if as_json:
            print_json({
                "kind": form.kind,
                "entry_count": form.entry_count,
                "byte_length": len(form),
                "digest": digest,
                "canonical": form.text(),
            })
        else:
            success_box("Canonical Form", [
                ("Kind", form.kind),
                ("Entries", str(form.entry_count)),
                ("Bytes", str(len(form))),
                ("Digest", digest),
            ], f"seal anchor {file} --kind {kind}")
            click.echo(form.text())
        sys.exit(0)

    except json.JSONDecodeError as e:
        error_box("Canon: FAILED", f"Invalid JSON: {e}")
        sys.exit(2)
    except Exception as e:
        error_box("Canon: FAILED", str(e))
        sys.exit(2)
