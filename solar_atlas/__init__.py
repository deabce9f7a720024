"""Solar permit import service."""

__version__ = "1.0.0"
