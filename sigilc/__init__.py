"""Algebra registration, alias rewriting, sigil desugaring and loop analysis for Sigil."""

__version__ = "0.1.0"