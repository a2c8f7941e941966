"""Visitor persona detection for an adaptive developer portfolio."""

__version__ = "1.0.0"
