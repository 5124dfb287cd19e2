"""logseal command line interface."""
from logseal import __version__

__all__ = ["__version__"]
