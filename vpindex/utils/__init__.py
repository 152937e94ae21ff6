"""Utility modules for common operations."""

from vpindex.utils.deterministic import make_rng

__all__ = [
    "make_rng",
]
