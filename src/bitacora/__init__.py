"""Bitácora Digital: versioned documents, signature consent and photo timelines."""

__version__ = "1.0.0"
