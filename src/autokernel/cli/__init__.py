"""
autokernel command line interface.

Entry point: ``autokernel`` (see ``autokernel.cli.app``).
"""

from autokernel.cli.app import app

__all__ = ["app"]
