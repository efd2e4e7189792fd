"""quarry command line interface.

Tags:
    quarry, cli, typer, migrations
"""

from quarry.cli.app import app

__all__ = ["app"]
