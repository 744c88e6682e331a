"""IUDX metadata catalogue service."""

__version__ = "0.1.0"
