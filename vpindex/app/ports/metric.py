"""Metric port interface for distance computation."""

from __future__ import annotations

from typing import Protocol, TypeVar

T_contra = TypeVar("T_contra", contravariant=True)


class MetricPort(Protocol[T_contra]):
    """Port interface for a distance function over a metric space.

    Any plain callable ``(a, b) -> float`` satisfies this port.

    Implementations must be pure and deterministic and must satisfy the
    metric axioms:
    - Non-negativity: ``d(a, b) >= 0``
    - Identity of indiscernibles: ``d(a, b) == 0`` iff ``a == b``
    - Symmetry: ``d(a, b) == d(b, a)``
    - Triangle inequality: ``d(a, c) <= d(a, b) + d(b, c)``

    None of these are verified at runtime. Search pruning is only correct
    when the triangle inequality holds.

    Side effects: None expected. Exceptions raised by the metric propagate
    to the caller (wrapped in ``BuildError`` during construction).
    """

    def __call__(self, a: T_contra, b: T_contra, /) -> float:
        """Return the distance between ``a`` and ``b``."""
        ...
