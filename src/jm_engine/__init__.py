"""Job tagging and preference matching core."""

__version__ = "0.1.0"
