"""A small word-based interpreter running on a flat, word-addressed memory."""

__version__ = "0.1.0"
__all__ = ["boot", "context_builder", "core", "hash", "mem", "parse", "values"]