"""Deterministic grid autobattler battle engine."""

__version__ = "0.1.0"
