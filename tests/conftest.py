"""Pytest configuration and fixtures."""

import math
from collections.abc import Callable, Generator
from typing import Any

import numpy as np
import pytest

from vpindex.config import Settings, set_settings

# Fixed 2-D data set with hand-checked neighbour answers.
POINTS_53 = [
    (2.0, 3.0), (0.0, 1.0), (4.0, 5.0), (45.0, 43.0), (21.0, 20.0), (39.0, 44.0),
    (96.0, 46.0), (95.0, 32.0), (14.0, 63.0), (19.0, 81.0), (66.0, 36.0), (26.0, 64.0),
    (10.0, 21.0), (92.0, 84.0), (31.0, 55.0), (59.0, 4.0), (43.0, 11.0), (87.0, 56.0),
    (76.0, 52.0), (10.0, 55.0), (64.0, 97.0), (6.0, 4.0), (10.0, 68.0), (9.0, 8.0),
    (60.0, 61.0), (22.0, 26.0), (79.0, 52.0), (29.0, 98.0), (88.0, 60.0), (29.0, 97.0),
    (42.0, 20.0), (5.0, 57.0), (81.0, 58.0), (22.0, 70.0), (44.0, 47.0), (16.0, 6.0),
    (2.0, 19.0), (26.0, 59.0), (45.0, 34.0), (10.0, 37.0), (8.0, 46.0), (38.0, 6.0),
    (98.0, 83.0), (18.0, 79.0), (3.0, 81.0), (77.0, 40.0), (82.0, 93.0), (1.0, 65.0),
    (51.0, 86.0), (34.0, 10.0), (91.0, 16.0), (28.0, 33.0), (5.0, 93.0),
]


def absolute(a: float, b: float) -> float:
    return abs(a - b)


def euclidean(a: tuple[float, ...], b: tuple[float, ...]) -> float:
    return math.dist(a, b)


def hamming(a: str, b: str) -> float:
    return float(sum(x != y for x, y in zip(a, b, strict=True)))


class CountingMetric:
    """Wrap a metric and count its invocations."""

    def __init__(self, metric: Callable[[Any, Any], float]) -> None:
        self.metric = metric
        self.calls = 0

    def __call__(self, a: Any, b: Any) -> float:
        self.calls += 1
        return self.metric(a, b)


@pytest.fixture(autouse=True)
def default_settings() -> Generator[Settings, None, None]:
    """Isolate every test from ambient VPINDEX_* configuration."""
    settings = Settings(_env_file=None)
    set_settings(settings)
    try:
        yield settings
    finally:
        set_settings(None)


@pytest.fixture
def points_53() -> list[tuple[float, float]]:
    return list(POINTS_53)


@pytest.fixture
def random_points() -> list[tuple[float, float]]:
    """300 uniform points in [-100, 100)^2."""
    rng = np.random.default_rng(7)
    return [(float(x), float(y)) for x, y in rng.uniform(-100.0, 100.0, size=(300, 2))]


@pytest.fixture
def grid_points() -> list[tuple[float, float]]:
    """200 points on a 5x5 integer grid (heavy duplication and distance ties)."""
    rng = np.random.default_rng(11)
    return [(float(x), float(y)) for x, y in rng.integers(0, 5, size=(200, 2))]


@pytest.fixture
def dna_words() -> list[str]:
    rng = np.random.default_rng(3)
    return ["".join(rng.choice(list("ACGT"), size=8)) for _ in range(250)]
