"""Terminal output for gh-nag."""

from .display import DisplayManager

__all__ = ["DisplayManager"]
