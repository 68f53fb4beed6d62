"""Backends rendering formula ASTs in target expression languages."""

from .javascript import to_javascript

__all__ = ["to_javascript"]
