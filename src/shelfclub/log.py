"""Logging setup.

Modules log through ``logging.getLogger(__name__)``; the CLI calls
``configure_logging`` once to route records to a Rich handler on stderr.
"""

import logging
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler

_configured = False


def configure_logging(level: str = "WARNING", console: Optional[Console] = None) -> None:
    """Install a RichHandler on the ``shelfclub`` logger."""
    global _configured

    logger = logging.getLogger("shelfclub")
    logger.setLevel(level.upper())

    if _configured:
        return

    handler = RichHandler(
        console=console or Console(stderr=True),
        show_path=False,
        rich_tracebacks=True,
    )
    handler.setFormatter(logging.Formatter("%(name)s: %(message)s"))
    logger.addHandler(handler)
    logger.propagate = False
    _configured = True
