"""Branch-and-bound neighbour search over implicit VP-tree arrays.

All three queries share one traversal. At a node with vantage point ``v``
and threshold ``t``, with ``d = distance(q, v)`` and current search radius
``R``, the triangle inequality bounds the distance from ``q`` to anything
in each subtree:

- near subtree (``distance(v, x) <= t``): at least ``d - t``, so it is
  visited when ``d - R <= t``;
- far subtree (``distance(v, x) > t``): at least ``t - d``, so it is
  visited when ``d + R > t``.

Pending subtrees sit on an explicit stack together with their lower bound
and are re-checked when popped, because ``R`` may have shrunk in between.
"""

from __future__ import annotations

import heapq
import math
from itertools import count
from typing import Protocol, TypeVar

from vpindex.app.ports.index import Neighbor
from vpindex.app.ports.metric import MetricPort
from vpindex.index.tree import TreeArray

T = TypeVar("T")

# Relative slack on pruning bounds; rounding in the metric must never hide a
# subtree holding an item exactly on the search boundary.
_BOUND_SLACK = 1e-9


class _Accumulator(Protocol):
    @property
    def radius(self) -> float: ...

    def offer(self, position: int, distance: float) -> None: ...


class _NearestAccumulator:
    """Best single candidate; the radius shrinks to its distance."""

    def __init__(self) -> None:
        self.position = -1
        self.distance = math.inf

    @property
    def radius(self) -> float:
        return self.distance

    def offer(self, position: int, distance: float) -> None:
        if distance < self.distance:
            self.position = position
            self.distance = distance


class _KNearestAccumulator:
    """Bounded max-heap of the ``k`` best candidates.

    Entries are ``(-distance, -sequence, position)`` so the root is the
    farthest candidate and, among equal distances, the latest discovered.
    """

    def __init__(self, k: int) -> None:
        self._k = k
        self._heap: list[tuple[float, int, int]] = []
        self._sequence = count()

    @property
    def radius(self) -> float:
        if len(self._heap) < self._k:
            return math.inf
        return -self._heap[0][0]

    def offer(self, position: int, distance: float) -> None:
        entry = (-distance, -next(self._sequence), position)
        if len(self._heap) < self._k:
            heapq.heappush(self._heap, entry)
        elif distance < -self._heap[0][0]:
            heapq.heapreplace(self._heap, entry)

    def ranked(self) -> list[tuple[float, int]]:
        """Return ``(distance, position)`` pairs ascending by distance."""
        ordered = sorted(
            (-neg_distance, -neg_seq, position) for neg_distance, neg_seq, position in self._heap
        )
        return [(distance, position) for distance, _, position in ordered]


class _RadiusAccumulator:
    """Every candidate within a fixed radius."""

    def __init__(self, radius: float) -> None:
        self._radius = radius
        self.hits: list[tuple[float, int]] = []

    @property
    def radius(self) -> float:
        return self._radius

    def offer(self, position: int, distance: float) -> None:
        self.hits.append((distance, position))


def _reachable(bound: float, radius: float) -> bool:
    if math.isinf(radius):
        return True
    return bound <= radius + _BOUND_SLACK * max(1.0, abs(radius))


def _traverse(
    tree: TreeArray[T],
    metric: MetricPort[T],
    query: T,
    accumulator: _Accumulator,
) -> None:
    """Visit every node that may hold a candidate within the current radius."""
    if len(tree) == 0:
        return

    items = tree.items
    thresholds = tree.thresholds
    sizes = tree.sizes
    left_sizes = tree.left_sizes

    stack: list[tuple[int, float]] = [(0, -math.inf)]
    while stack:
        position, bound = stack.pop()
        if not _reachable(bound, accumulator.radius):
            continue

        distance = float(metric(query, items[position]))
        if distance <= accumulator.radius:
            accumulator.offer(position, distance)

        threshold = float(thresholds[position])
        left_size = int(left_sizes[position])
        right_size = int(sizes[position]) - 1 - left_size

        near = (position + 1, distance - threshold) if left_size > 0 else None
        far = (position + 1 + left_size, threshold - distance) if right_size > 0 else None

        # Push the side holding the query last so it is explored first and
        # shrinks the radius before the other side is considered.
        pending = (far, near) if distance <= threshold else (near, far)
        radius = accumulator.radius
        for entry in pending:
            if entry is not None and _reachable(entry[1], radius):
                stack.append(entry)


def _neighbor(tree: TreeArray[T], position: int, distance: float) -> Neighbor[T]:
    return Neighbor(
        item=tree.items[position],
        distance=distance,
        item_id=int(tree.ids[position]),
    )


def nearest(
    tree: TreeArray[T],
    metric: MetricPort[T],
    query: T,
) -> Neighbor[T] | None:
    """Return the item closest to ``query``, or None for an empty tree.

    When several items share the minimum distance, the first one reached by
    the traversal is returned.
    """
    accumulator = _NearestAccumulator()
    _traverse(tree, metric, query, accumulator)
    if accumulator.position < 0:
        return None
    return _neighbor(tree, accumulator.position, accumulator.distance)


def k_nearest(
    tree: TreeArray[T],
    metric: MetricPort[T],
    query: T,
    k: int,
) -> list[Neighbor[T]]:
    """Return up to ``k`` items closest to ``query``, ascending by distance.

    Args:
        tree: Built tree
        metric: Metric the tree was built with
        query: Query point
        k: Maximum number of neighbours

    Returns:
        ``min(k, len(tree))`` neighbours; ties keep traversal order

    Raises:
        ValueError: If ``k`` is negative
    """
    if k < 0:
        raise ValueError(f"k must be non-negative; got {k}")
    if k == 0:
        return []

    accumulator = _KNearestAccumulator(k)
    _traverse(tree, metric, query, accumulator)
    return [_neighbor(tree, position, distance) for distance, position in accumulator.ranked()]


def within(
    tree: TreeArray[T],
    metric: MetricPort[T],
    query: T,
    radius: float,
) -> list[Neighbor[T]]:
    """Return every item with ``distance(query, item) <= radius``.

    Results are sorted ascending by distance for convenience.

    Raises:
        ValueError: If ``radius`` is NaN
    """
    radius = float(radius)
    if math.isnan(radius):
        raise ValueError("radius must be a number; got NaN")
    if radius < 0:
        return []

    accumulator = _RadiusAccumulator(radius)
    _traverse(tree, metric, query, accumulator)
    accumulator.hits.sort(key=lambda hit: hit[0])
    return [_neighbor(tree, position, distance) for distance, position in accumulator.hits]
