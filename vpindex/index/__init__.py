"""Vantage-point tree construction and querying."""

from vpindex.index.build import build_tree
from vpindex.index.search import k_nearest, nearest, within
from vpindex.index.tree import TreeArray
from vpindex.index.vptree import IndexState, VPIndex, build_index

__all__ = [
    "IndexState",
    "TreeArray",
    "VPIndex",
    "build_index",
    "build_tree",
    "k_nearest",
    "nearest",
    "within",
]
