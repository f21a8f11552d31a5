"""
Core module for fsi_interp.

Provides the zone geometry consumed by the donor mappers and the
coupling configuration.
"""

from .config import (
    CouplingConfig,
    InterfaceTopologyError,
    InterpolationConfig,
    InterpolationMethod,
    MarkerConfig,
    SearchAlgorithm,
    ZoneConfig,
)
from .mesh import ElementType, MeshElement, MeshModel, Node
from .zone import Marker, Vertex, Zone, zones_from_config

__all__ = [
    "CouplingConfig",
    "InterfaceTopologyError",
    "InterpolationConfig",
    "InterpolationMethod",
    "MarkerConfig",
    "SearchAlgorithm",
    "ZoneConfig",
    "ElementType",
    "MeshElement",
    "MeshModel",
    "Node",
    "Marker",
    "Vertex",
    "Zone",
    "zones_from_config",
]
