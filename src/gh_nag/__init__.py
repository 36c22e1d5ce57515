"""gh-nag: post a reminder comment to every GitHub issue matching a filter."""

__version__ = "0.1.0"
