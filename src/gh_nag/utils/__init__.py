"""Utility modules for gh-nag."""

from .config import ConfigManager
from .export import ExportManager

__all__ = ["ConfigManager", "ExportManager"]
