"""Deterministic randomness utilities for reproducible builds."""

import numpy as np


def make_rng(seed: int) -> np.random.Generator:
    """Create an isolated random generator for one build pass.

    Each build gets its own generator so that two builds with the same seed
    and the same input order pick the same vantage points, regardless of
    what else consumed randomness in between.

    Args:
        seed: Non-negative integer seed

    Returns:
        numpy ``Generator`` seeded with ``seed``
    """
    return np.random.default_rng(seed)
