"""Allow ``python -m jact``."""

from jact.cli import cli

cli()
