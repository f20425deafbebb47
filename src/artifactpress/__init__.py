"""Decompose untrusted HTML artifacts into cacheable assets and re-render them safely."""

__version__ = "0.3.0"
