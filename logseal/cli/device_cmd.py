"""Device identity commands."""
import sys

import click

from .output import error_box, success_box


@click.group()
def device():
    """Device identity operations."""
    pass


@device.command('id')
@click.argument('manufacturer')
@click.argument('model')
@click.argument('serial')
@click.argument('nonce')
def device_id(manufacturer: str, model: str, serial: str, nonce: str):
    """Derive the subject identity for a device."""
    try:
        from logseal.anchor.hash import derive_device_identity

        subject = derive_device_identity(manufacturer, model, serial, nonce)
        success_box("Device Identity", [
            ("Manufacturer", manufacturer),
            ("Model", model),
            ("Serial", serial),
            ("Subject", subject),
        ], f"seal anchor FILE --kind KIND --subject {subject}")
        sys.exit(0)

    except Exception as e:
        error_box("Device Identity: FAILED", str(e))
        sys.exit(2)
