"""Reading progress tracking."""

from .progress import ProgressLog

__all__ = ["ProgressLog"]
