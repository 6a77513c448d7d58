"""Book identity resolution, shelf management and emotion tags."""

from .emotions import EmotionManager
from .resolver import BookResolver
from .shelf import ShelfManager

__all__ = ["BookResolver", "EmotionManager", "ShelfManager"]
