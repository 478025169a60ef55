"""Recover world seeds from observed generated features."""

__version__ = "0.1.0"
