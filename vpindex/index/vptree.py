"""In-memory vantage-point tree index with explicit rebuilds."""

from __future__ import annotations

import logging
import threading
import time
import numbers
from collections.abc import Callable, Iterable
from typing import Literal, TypeVar

from vpindex.app.ports.index import Neighbor, NeighborIndexPort
from vpindex.app.ports.metric import MetricPort
from vpindex.config import Settings, get_settings
from vpindex.errors import EmptyInputError, StaleIndexError
from vpindex.index import search
from vpindex.index.build import build_tree
from vpindex.index.tree import TreeArray

logger = logging.getLogger(__name__)

T = TypeVar("T")

IndexState = Literal["EMPTY", "DIRTY", "BUILT"]


class VPIndex(NeighborIndexPort[T]):
    """Exact nearest-neighbour index over a caller-supplied metric.

    The tree is never updated in place. ``insert``, ``extend`` and ``remove``
    only change the item collection and mark the index stale; queries then
    raise ``StaleIndexError`` until ``rebuild()`` runs (or rebuild implicitly
    when ``Settings.auto_rebuild`` is enabled).

    Build and mutation hold an internal lock. A rebuilt tree is published
    with a single assignment, and each query works on one snapshot of it, so
    concurrent queries never observe a partially built tree.

    Example:
        >>> index = VPIndex(lambda a, b: abs(a - b), range(8))
        >>> index.rebuild()
        >>> index.nearest(3.2).item
        3
    """

    def __init__(
        self,
        metric: MetricPort[T],
        items: Iterable[T] = (),
        *,
        settings: Settings | None = None,
    ) -> None:
        self._metric = metric
        self._settings = settings if settings is not None else get_settings()
        self._items: dict[int, T] = {}
        self._next_id = 0
        self._tree: TreeArray[T] | None = None
        self._lock = threading.Lock()
        for item in items:
            self._add(item)

    @property
    def metric(self) -> MetricPort[T]:
        return self._metric

    @property
    def settings(self) -> Settings:
        return self._settings

    @property
    def tree(self) -> TreeArray[T] | None:
        """Return the current tree, or None while the index is stale."""
        return self._tree

    @property
    def state(self) -> IndexState:
        if self._tree is not None:
            return "BUILT"
        if not self._items:
            return "EMPTY"
        return "DIRTY"

    def is_stale(self) -> bool:
        return self._tree is None

    def __len__(self) -> int:
        return len(self._items)

    def __contains__(self, item_id: object) -> bool:
        return item_id in self._items

    def get(self, item_id: int) -> T:
        """Return the item stored under ``item_id``.

        Raises:
            KeyError: If no item has that id
        """
        return self._items[item_id]

    def items(self) -> dict[int, T]:
        """Return a snapshot of the stored items keyed by id."""
        return dict(self._items)

    def depth(self) -> int:
        """Return the height of the current tree (0 while stale or empty)."""
        tree = self._tree
        return tree.depth() if tree is not None else 0

    def _add(self, item: T) -> int:
        item_id = self._next_id
        self._next_id += 1
        self._items[item_id] = item
        return item_id

    def insert(self, item: T) -> int:
        """Add ``item`` and mark the index stale.

        Returns:
            Id of the new item, usable with ``get`` and ``remove``
        """
        with self._lock:
            item_id = self._add(item)
            self._tree = None
        return item_id

    def extend(self, items: Iterable[T]) -> list[int]:
        """Add every item in ``items`` and mark the index stale.

        If iterating ``items`` raises, the items added before the failure stay
        in the index and the index is still marked stale.
        """
        item_ids: list[int] = []
        with self._lock:
            try:
                for item in items:
                    item_ids.append(self._add(item))
            finally:
                if item_ids:
                    self._tree = None
        return item_ids

    def remove(self, target: int | Callable[[T], bool]) -> bool:
        """Remove an item by id, or every item matching a predicate.

        Args:
            target: Item id, or a callable returning True for items to drop

        Returns:
            True if at least one item was removed (the index is then stale)

        Raises:
            TypeError: If ``target`` is neither an id nor a callable
        """
        with self._lock:
            if callable(target):
                doomed = [item_id for item_id, item in self._items.items() if target(item)]
            elif isinstance(target, numbers.Integral) and not isinstance(target, bool):
                item_id = int(target)
                doomed = [item_id] if item_id in self._items else []
            else:
                raise TypeError(
                    f"remove() expects an item id or a predicate; got {type(target).__name__}"
                )

            for item_id in doomed:
                del self._items[item_id]
            if doomed:
                self._tree = None
        return bool(doomed)

    def rebuild(self) -> None:
        """Build a fresh tree from the current items.

        Raises:
            BuildError: If the metric raises; the previous tree (if any) is kept
        """
        self._rebuild()

    def _rebuild(self) -> TreeArray[T]:
        started = time.perf_counter()
        with self._lock:
            item_ids = list(self._items)
            values = list(self._items.values())
            if values:
                tree = build_tree(
                    values,
                    self._metric,
                    ids=item_ids,
                    leaf_size=self._settings.leaf_size,
                    vantage_policy=self._settings.vantage_policy,
                    seed=self._settings.seed,
                )
            else:
                tree = TreeArray.empty()
            self._tree = tree

        if logger.isEnabledFor(logging.INFO):
            elapsed_ms = (time.perf_counter() - started) * 1000.0
            logger.info(
                "Rebuilt VP-tree index: %d items, depth %d, %.1f ms",
                len(tree),
                tree.depth(),
                elapsed_ms,
            )
        return tree

    def _snapshot(self) -> TreeArray[T]:
        tree = self._tree
        if tree is not None:
            return tree

        if self._settings.auto_rebuild:
            logger.debug("Index is stale; rebuilding before query")
            return self._rebuild()

        raise StaleIndexError(
            f"Index has {len(self._items)} items with unbuilt changes; call rebuild() first"
        )

    def nearest(self, query: T) -> Neighbor[T] | None:
        """Return the closest item to ``query``, or None when the index is empty.

        Raises:
            StaleIndexError: If the index needs a rebuild
        """
        return search.nearest(self._snapshot(), self._metric, query)

    def k_nearest(self, query: T, k: int) -> list[Neighbor[T]]:
        """Return up to ``k`` closest items, ascending by distance.

        Raises:
            StaleIndexError: If the index needs a rebuild
            ValueError: If ``k`` is negative
        """
        return search.k_nearest(self._snapshot(), self._metric, query, k)

    def within(self, query: T, radius: float) -> list[Neighbor[T]]:
        """Return every item within ``radius`` of ``query``, ascending by distance.

        Raises:
            StaleIndexError: If the index needs a rebuild
        """
        return search.within(self._snapshot(), self._metric, query, radius)


def build_index(
    items: Iterable[T],
    metric: MetricPort[T],
    *,
    settings: Settings | None = None,
    allow_empty: bool = True,
) -> VPIndex[T]:
    """Create an index over ``items`` and build it immediately.

    Args:
        items: Items to index
        metric: Distance function satisfying the metric axioms
        settings: Settings override (default: global settings)
        allow_empty: Accept an empty collection (default: True)

    Returns:
        Built VPIndex

    Raises:
        EmptyInputError: If ``items`` is empty and ``allow_empty`` is False
        BuildError: If the metric raises during construction
    """
    collected = list(items)
    if not collected and not allow_empty:
        raise EmptyInputError("Cannot build an index from zero items")

    index = VPIndex(metric, collected, settings=settings)
    index.rebuild()
    return index
