"""vpindex - exact nearest-neighbour search for arbitrary metric spaces.

A vantage-point tree stored as an implicit pre-order array: child positions
are derived from stored subtree sizes instead of pointers.
"""

__version__ = "0.1.0"
__author__ = "vpindex Contributors"

from vpindex.app.ports import MetricPort, Neighbor
from vpindex.config import Settings, get_settings
from vpindex.errors import (
    BuildError,
    EmptyInputError,
    QueryError,
    StaleIndexError,
    VPIndexError,
)
from vpindex.index import VPIndex, build_index

__all__ = [
    "BuildError",
    "EmptyInputError",
    "MetricPort",
    "Neighbor",
    "QueryError",
    "Settings",
    "StaleIndexError",
    "VPIndex",
    "VPIndexError",
    "__version__",
    "build_index",
    "get_settings",
]
