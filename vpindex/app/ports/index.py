"""Nearest-neighbour index port interface and result DTO."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, Protocol, TypeVar

T = TypeVar("T")


@dataclass(slots=True)
class Neighbor(Generic[T]):
    """Single query result."""

    item: T
    distance: float
    item_id: int


class NeighborIndexPort(Protocol[T]):
    """Port interface for metric-space neighbour search.

    Implementations should provide:
    - Exact results (no approximation)
    - Explicit rebuilds after mutation
    - Results ordered ascending by distance

    Side effects: None (in-memory only).
    """

    def rebuild(self) -> None:
        """Rebuild the search structure from the current items."""
        ...

    def is_stale(self) -> bool:
        """Return True when the items changed since the last rebuild."""
        ...

    def nearest(self, query: T) -> Neighbor[T] | None:
        """Return the closest item, or None when the index is empty."""
        ...

    def k_nearest(self, query: T, k: int) -> list[Neighbor[T]]:
        """Return up to ``k`` closest items, ascending by distance."""
        ...

    def within(self, query: T, radius: float) -> list[Neighbor[T]]:
        """Return every item with ``distance <= radius``."""
        ...
