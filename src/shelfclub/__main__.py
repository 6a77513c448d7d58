"""Allow running as ``python -m shelfclub``."""

from .cli import app

app(prog_name="shelfclub")
