"""Port interfaces for the vpindex application layer.

These protocol interfaces define contracts for caller-supplied
collaborators and for index implementations.
"""

__all__ = [
    "MetricPort",
    "Neighbor",
    "NeighborIndexPort",
]

from vpindex.app.ports.index import Neighbor, NeighborIndexPort
from vpindex.app.ports.metric import MetricPort
