"""SnipShare: encrypted snippet and file sharing service."""

__version__ = "1.1.0"
