"""Hybrid lexical + vector search for a documentation portal."""

__version__ = "0.1.0"
