"""Exception hierarchy for index construction and queries."""

from __future__ import annotations


class VPIndexError(Exception):
    """Base class for all vpindex errors."""

    pass


class EmptyInputError(VPIndexError, ValueError):
    """Raised when a tree is requested for an empty item collection."""

    pass


class BuildError(VPIndexError):
    """Raised when the metric fails while a tree is being built.

    The exception raised by the metric is available as ``__cause__``.
    """

    pass


class QueryError(VPIndexError):
    """Base class for query failures."""

    pass


class StaleIndexError(QueryError):
    """Raised when a query runs against an index that needs a rebuild."""

    pass
