"""Implicit array layout for vantage-point trees.

Nodes are stored in pre-order. No child links are kept: the near (left)
child of node ``i`` sits at ``i + 1`` and the far (right) child at
``i + 1 + left_sizes[i]``. Median splits on arbitrary-size subsets do not
produce a complete binary tree, so heap-style ``2i + 1`` addressing does not
apply.
"""

from __future__ import annotations

import math
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

import numpy as np

from vpindex.app.ports.metric import MetricPort

T = TypeVar("T")

NO_CHILD = -1


@dataclass(frozen=True, slots=True)
class TreeArray(Generic[T]):
    """Flattened VP-tree produced by a single build pass.

    Attributes:
        items: Items in pre-order (node ``i`` holds ``items[i]`` as vantage point)
        ids: Item ids aligned with ``items``
        thresholds: Median split distance per node (``inf`` for leaf runs)
        sizes: Subtree size per node, counting the node itself
        left_sizes: Size of the near subtree per node

    Positions are only meaningful for the build that produced them.
    """

    items: Sequence[T]
    ids: np.ndarray
    thresholds: np.ndarray
    sizes: np.ndarray
    left_sizes: np.ndarray

    @classmethod
    def empty(cls) -> TreeArray[Any]:
        """Return a tree with no nodes; every query against it has no results."""
        return cls(
            items=(),
            ids=np.empty(0, dtype=np.int64),
            thresholds=np.empty(0, dtype=np.float64),
            sizes=np.empty(0, dtype=np.int64),
            left_sizes=np.empty(0, dtype=np.int64),
        )

    def __len__(self) -> int:
        return len(self.items)

    def right_size(self, position: int) -> int:
        """Return the size of the far subtree of ``position``."""
        return int(self.sizes[position] - 1 - self.left_sizes[position])

    def left_child(self, position: int) -> int:
        """Return the near child position, or ``NO_CHILD``."""
        if self.left_sizes[position] > 0:
            return position + 1
        return NO_CHILD

    def right_child(self, position: int) -> int:
        """Return the far child position, or ``NO_CHILD``."""
        if self.right_size(position) > 0:
            return position + 1 + int(self.left_sizes[position])
        return NO_CHILD

    def depth(self) -> int:
        """Return the number of node levels (0 for an empty tree)."""
        if len(self) == 0:
            return 0

        deepest = 0
        stack = [(0, 1)]
        while stack:
            position, level = stack.pop()
            deepest = max(deepest, level)
            for child in (self.left_child(position), self.right_child(position)):
                if child != NO_CHILD:
                    stack.append((child, level + 1))
        return deepest

    def check_invariants(self, metric: MetricPort[T] | None = None) -> None:
        """Verify the layout, and the near/far split when ``metric`` is given.

        Intended for tests and debugging: with a metric this costs one distance
        evaluation per (node, descendant) pair.

        Raises:
            AssertionError: If any size or split invariant is violated
        """
        count = len(self)
        lengths = {len(self.ids), len(self.thresholds), len(self.sizes), len(self.left_sizes)}
        if lengths != {count}:
            raise AssertionError("Tree arrays have mismatched lengths")
        if count and int(self.sizes[0]) != count:
            raise AssertionError(f"Root size {int(self.sizes[0])} != item count {count}")

        for position in range(count):
            size = int(self.sizes[position])
            left = int(self.left_sizes[position])
            right = self.right_size(position)
            if left < 0 or right < 0 or position + size > count:
                raise AssertionError(f"Node {position} has inconsistent sizes")

            left_child = self.left_child(position)
            if left_child != NO_CHILD and int(self.sizes[left_child]) != left:
                raise AssertionError(f"Near child of node {position} has wrong size")
            right_child = self.right_child(position)
            if right_child != NO_CHILD and int(self.sizes[right_child]) != right:
                raise AssertionError(f"Far child of node {position} has wrong size")

            if metric is None:
                continue

            threshold = float(self.thresholds[position])
            vantage = self.items[position]
            near_end = position + 1 + left
            for other in range(position + 1, near_end):
                if not metric(vantage, self.items[other]) <= threshold:
                    raise AssertionError(f"Near item {other} beyond threshold of node {position}")
            for other in range(near_end, position + size):
                if not metric(vantage, self.items[other]) > threshold:
                    raise AssertionError(f"Far item {other} within threshold of node {position}")

    def is_leaf_run(self, position: int) -> bool:
        """Return True when ``position`` heads an unpartitioned leaf run."""
        return math.isinf(float(self.thresholds[position]))
