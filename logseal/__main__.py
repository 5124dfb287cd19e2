"""
Entry point for running logseal as a module.

Usage:
    python -m logseal [command] [options]

Example:
    python -m logseal canon flight.json --kind drone_sample
    python -m logseal anchor flight.json --kind drone_sample --subject 0x...
    python -m logseal sweep --batch 100
"""

from logseal.cli.main import cli

if __name__ == "__main__":
    cli()
