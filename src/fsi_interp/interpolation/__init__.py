"""
Interface interpolation module.

This module builds donor maps between the coupled markers of two zones and
transfers data and displacements across them.

Usage
-----
>>> from fsi_interp.interpolation import create_interpolator
>>> interpolator = create_interpolator(zones, config)
>>> interpolator.set_point_data(1, point, force)
>>> interpolator.propagate_data(0)
"""

from typing import Dict, Mapping, Optional, Sequence, Type, Union

from fsi_interp.core.config import CouplingConfig, InterpolationMethod
from fsi_interp.core.zone import Zone

from .base import Interpolator, rotation_displacement
from .conservative import ConsistentConservativeInterpolator
from .data import DataField
from .donors import Donor, DonorTable
from .nearest import NearestNeighborInterpolator, NearestVertexSearch, nearest_vertex
from .projection import Projection, project_to_face

INTERPOLATORS: Dict[InterpolationMethod, Type[Interpolator]] = {
    InterpolationMethod.NEAREST_NEIGHBOR: NearestNeighborInterpolator,
    InterpolationMethod.CONSISTENT_CONSERVATIVE: ConsistentConservativeInterpolator,
}


def create_interpolator(
    zones: Union[Mapping[int, Zone], Sequence[Zone]],
    config: CouplingConfig,
    zone_pair: Optional[Sequence[int]] = None,
) -> Interpolator:
    """
    Build the interpolator selected by a coupling configuration.

    Parameters
    ----------
    zones : mapping or sequence of Zone
        Zone geometry, keyed (or listed) by zone ID.
    config : CouplingConfig
        Coupling configuration; ``config.interpolation.method`` selects the class.
    zone_pair : sequence of int, optional
        Coupled zone IDs. Defaults to the zones of the configuration, in order.

    Returns
    -------
    Interpolator
        The interpolator with its donor map already built.
    """
    method = InterpolationMethod(config.interpolation.method)
    interpolator_class = INTERPOLATORS[method]
    pair = list(zone_pair) if zone_pair is not None else config.zone_pair
    return interpolator_class(
        zones,
        config.zone_configs(),
        pair,
        n_zone=len(pair),
        config=config.interpolation,
    )


__all__ = [
    "INTERPOLATORS",
    "create_interpolator",
    "Interpolator",
    "NearestNeighborInterpolator",
    "ConsistentConservativeInterpolator",
    "NearestVertexSearch",
    "nearest_vertex",
    "DataField",
    "Donor",
    "DonorTable",
    "Projection",
    "project_to_face",
    "rotation_displacement",
]
