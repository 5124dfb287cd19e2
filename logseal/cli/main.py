"""logseal CLI entry point - assembles all commands."""
import click

from . import __version__
from .anchor_cmd import anchor
from .canon_cmd import canon
from .device_cmd import device
from .records_cmd import records
from .sweep_cmd import sweep
from .verify_cmd import verify


@click.group()
@click.version_option(version=__version__)
def cli():
    """logseal: tamper-evident anchoring for device telemetry."""
    pass


cli.add_command(canon)
cli.add_command(device)
cli.add_command(anchor)
cli.add_command(sweep)
cli.add_command(verify)
cli.add_command(records)


if __name__ == "__main__":
    cli()
