"""Variant chess rule engine with an optional HTTP adapter."""

__version__ = "0.1.0"
