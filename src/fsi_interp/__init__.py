"""
fsi_interp: donor mapping and data/displacement transfer across the
interface of two independently meshed coupled zones.
"""

from fsi_interp.core import (
    CouplingConfig,
    InterfaceTopologyError,
    InterpolationConfig,
    InterpolationMethod,
    MarkerConfig,
    MeshModel,
    SearchAlgorithm,
    Zone,
    ZoneConfig,
)
from fsi_interp.interpolation import (
    ConsistentConservativeInterpolator,
    Interpolator,
    NearestNeighborInterpolator,
    create_interpolator,
)

__version__ = "0.1.0"

__all__ = [
    "CouplingConfig",
    "InterfaceTopologyError",
    "InterpolationConfig",
    "InterpolationMethod",
    "MarkerConfig",
    "MeshModel",
    "SearchAlgorithm",
    "Zone",
    "ZoneConfig",
    "Interpolator",
    "NearestNeighborInterpolator",
    "ConsistentConservativeInterpolator",
    "create_interpolator",
]
