"""Build vantage-point trees by recursive median partitioning.

The recursion is driven by an explicit stack of slice bounds over a working
permutation of item positions. The node for slice ``[lo, hi)`` is written at
array position ``lo`` and its near items are moved directly behind it, so
when the stack drains the permutation is already the pre-order layout.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import TypeVar

import numpy as np

from vpindex.app.ports.metric import MetricPort
from vpindex.config import VantagePolicy
from vpindex.errors import BuildError, EmptyInputError
from vpindex.index.tree import TreeArray
from vpindex.utils.deterministic import make_rng

logger = logging.getLogger(__name__)

T = TypeVar("T")

VANTAGE_POLICIES: tuple[VantagePolicy, ...] = ("first", "random")


def _measure(
    metric: MetricPort[T],
    vantage: T,
    items: Sequence[T],
    positions: np.ndarray,
) -> np.ndarray:
    """Return distances from ``vantage`` to ``items[p]`` for each position."""
    try:
        return np.fromiter(
            (metric(vantage, items[int(position)]) for position in positions),
            dtype=np.float64,
            count=len(positions),
        )
    except Exception as exc:
        raise BuildError(f"Distance metric failed during tree build: {exc}") from exc


def build_tree(
    items: Sequence[T],
    metric: MetricPort[T],
    *,
    ids: Sequence[int] | None = None,
    leaf_size: int = 1,
    vantage_policy: VantagePolicy = "first",
    seed: int = 0,
) -> TreeArray[T]:
    """Partition ``items`` into a VP-tree stored as an implicit array.

    At each slice a vantage point is chosen, the distance from it to every
    other item in the slice is measured, and the lower median of those
    distances becomes the node threshold (found with ``numpy.partition``,
    expected linear time). Items with ``distance <= threshold`` form the near
    subtree, the rest the far subtree; ties always go near. Both groups keep
    their relative order.

    Slices of at most ``leaf_size`` items are not partitioned. They are laid
    out as a chain of near-only nodes with an infinite threshold, which keeps
    the size invariants intact while search scans them linearly. A slice
    whose items all lie at distance zero from its vantage point becomes a
    leaf run too, so duplicates cost one pass instead of one level each.

    Args:
        items: Items to index (at least one)
        metric: Distance function satisfying the metric axioms
        ids: Item ids aligned with ``items`` (default: ``0..n-1``)
        leaf_size: Largest slice stored as a linear leaf run (default: 1)
        vantage_policy: ``"first"`` item of each slice, or seeded ``"random"``
        seed: Seed for the random policy

    Returns:
        TreeArray in pre-order

    Raises:
        EmptyInputError: If ``items`` is empty
        BuildError: If the metric raises
        ValueError: If ``ids``, ``leaf_size`` or ``vantage_policy`` is invalid
    """
    count = len(items)
    if count == 0:
        raise EmptyInputError("Cannot build a vantage-point tree from zero items")

    if leaf_size < 1:
        raise ValueError(f"leaf_size must be at least 1; got {leaf_size}")

    if vantage_policy not in VANTAGE_POLICIES:
        raise ValueError(
            f"Unknown vantage policy {vantage_policy!r}; expected one of {VANTAGE_POLICIES}"
        )

    if ids is None:
        id_array = np.arange(count, dtype=np.int64)
    else:
        id_array = np.asarray(ids, dtype=np.int64)
        if id_array.shape != (count,):
            raise ValueError("Number of ids must match number of items")

    order = np.arange(count, dtype=np.int64)
    thresholds = np.full(count, np.inf, dtype=np.float64)
    sizes = np.zeros(count, dtype=np.int64)
    left_sizes = np.zeros(count, dtype=np.int64)
    rng = make_rng(seed) if vantage_policy == "random" else None

    stack = [(0, count)]
    while stack:
        lo, hi = stack.pop()
        span = hi - lo

        if span <= leaf_size:
            sizes[lo:hi] = np.arange(span, 0, -1)
            left_sizes[lo:hi] = np.arange(span - 1, -1, -1)
            continue

        if rng is not None:
            pick = int(rng.integers(lo, hi))
            order[lo], order[pick] = order[pick], order[lo]

        vantage = items[int(order[lo])]
        rest = order[lo + 1 : hi].copy()
        distances = _measure(metric, vantage, items, rest)

        median = (len(rest) - 1) // 2
        threshold = float(np.partition(distances, median)[median])

        near_mask = distances <= threshold
        if threshold == 0.0 and near_mask.all():
            # Every item coincides with the vantage point
            sizes[lo:hi] = np.arange(span, 0, -1)
            left_sizes[lo:hi] = np.arange(span - 1, -1, -1)
            continue

        near = rest[near_mask]
        far = rest[~near_mask]
        split = lo + 1 + len(near)
        order[lo + 1 : split] = near
        order[split:hi] = far

        thresholds[lo] = threshold
        sizes[lo] = span
        left_sizes[lo] = len(near)

        # The median itself is always near, so the near slice is never empty
        if split < hi:
            stack.append((split, hi))
        stack.append((lo + 1, split))

    logger.debug(
        "Built VP-tree over %d items (leaf_size=%d, vantage_policy=%s)",
        count,
        leaf_size,
        vantage_policy,
    )

    return TreeArray(
        items=[items[int(position)] for position in order],
        ids=id_array[order],
        thresholds=thresholds,
        sizes=sizes,
        left_sizes=left_sizes,
    )
