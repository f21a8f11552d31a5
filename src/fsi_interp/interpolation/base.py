"""
Base class for interface interpolators.

An Interpolator owns the donor map between the coupled markers of two zones
and the generic per-point data storage. Concrete subclasses only decide how
donors and weights are chosen (``set_transfer_coefficients``); transferring
data and displacements from those donors is shared:

- ``propagate_data(zone)``: for every interface vertex of ``zone``,
  ``data[vertex] = sum(w_j * data[donor_j])``.
- ``propagate_displacement(zone)``: for every interface vertex of ``zone``,
  ``u = sum(w_j * (u_j + theta_j x (x - x_j)))``, where ``theta_j`` is the
  donor rotation vector and ``x - x_j`` the lever arm from the donor point to
  the receiver. In 2D only the out-of-plane rotation component contributes.

The donor map is built once at construction. It is not rebuilt when the
interface moves; call :meth:`Interpolator.rebuild` explicitly after a
topology or geometry change.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple, Union

import numpy as np

from fsi_interp.core.config import (
    InterfaceTopologyError,
    InterpolationConfig,
    InterpolationMethod,
    ZoneConfig,
)
from fsi_interp.core.zone import Marker, Vertex, Zone
from fsi_interp.interpolation.data import DataField
from fsi_interp.interpolation.donors import Donor, DonorTable

logger = logging.getLogger(__name__)


def rotation_displacement(rotation: np.ndarray, lever: np.ndarray, dimension: int) -> np.ndarray:
    """
    Displacement induced by a small rotation acting on a lever arm.

    Parameters
    ----------
    rotation : ndarray, shape (3,)
        Rotation vector of the donor point.
    lever : ndarray, shape (dimension,)
        Receiver coordinate minus donor coordinate.
    dimension : int
        Spatial dimension, 2 or 3.

    Returns
    -------
    ndarray, shape (dimension,)
        ``rotation x lever`` (in 2D, ``(-l_y * r_z, l_x * r_z)``).
    """
    if dimension == 2:
        return np.array([-lever[1] * rotation[2], lever[0] * rotation[2]])
    return np.cross(rotation, lever)


class Interpolator(ABC):
    """
    Donor map between the interface markers of two zones.

    Parameters
    ----------
    zones : mapping or sequence of Zone
        Zones of the simulation, keyed (or indexed) by zone ID.
    zone_configs : mapping or sequence of ZoneConfig
        Marker configuration of each zone, keyed (or indexed) by zone ID.
    zone_pair : sequence of int
        IDs of the two coupled zones. The first zone is the receiving side of
        consistent transfers for element-based mappers.
    n_zone : int, optional
        Number of coupled zones. Only 2 is supported.
    config : InterpolationConfig, optional
        Search algorithm, data length and tolerance.

    Raises
    ------
    InterfaceTopologyError
        If the zone pair is not exactly two distinct known zones, if their
        dimensions differ, or if an interface index has no matching marker.
    """

    method: InterpolationMethod

    def __init__(
        self,
        zones: Union[Mapping[int, Zone], Sequence[Zone]],
        zone_configs: Union[Mapping[int, ZoneConfig], Sequence[ZoneConfig]],
        zone_pair: Sequence[int],
        n_zone: int = 2,
        config: Optional[InterpolationConfig] = None,
    ):
        self.zones: Dict[int, Zone] = _by_id(zones, "id")
        self.zone_configs: Dict[int, ZoneConfig] = _by_id(zone_configs, "zone_id")
        self.n_zone = n_zone
        self.zone_pair: Tuple[int, ...] = tuple(zone_pair)
        self.config = config if config is not None else InterpolationConfig(method=self.method.value)

        self.donor_table = DonorTable()
        self.data = DataField()

        self._validate_zone_pair()
        self.dimension = self.zones[self.zone_pair[0]].dimension
        self.interface_pairs: List[Tuple[int, int]] = self._match_interface_markers()

        self.rebuild()

        n_vars = self.config.n_vars if self.config.n_vars is not None else self.dimension
        self.initialize_data(self.zone_pair, n_vars)

    # =========================================================================
    # Construction
    # =========================================================================

    def _validate_zone_pair(self) -> None:
        if self.n_zone != 2 or len(self.zone_pair) != 2:
            raise InterfaceTopologyError(
                f"Interface coupling supports exactly 2 zones, got n_zone={self.n_zone} "
                f"and zone_pair={self.zone_pair}"
            )
        if self.zone_pair[0] == self.zone_pair[1]:
            raise InterfaceTopologyError(f"Cannot couple zone {self.zone_pair[0]} with itself")
        for zone_id in self.zone_pair:
            if zone_id not in self.zones:
                raise InterfaceTopologyError(f"Zone {zone_id} has no geometry")
            if zone_id not in self.zone_configs:
                raise InterfaceTopologyError(f"Zone {zone_id} has no configuration")

        dims = {self.zones[z].dimension for z in self.zone_pair}
        if len(dims) != 1:
            raise InterfaceTopologyError(
                f"Coupled zones must share the spatial dimension, got {sorted(dims)}"
            )

    def _match_interface_markers(self) -> List[Tuple[int, int]]:
        """Pair the interface markers of both zones by their interface index."""
        first, second = self.zone_pair
        n_pairs = len(self.zone_configs[first].interface_markers())
        if n_pairs == 0:
            raise InterfaceTopologyError(f"Zone {first} declares no interface markers")
        n_second = len(self.zone_configs[second].interface_markers())
        if n_second != n_pairs:
            raise InterfaceTopologyError(
                f"Zone {first} declares {n_pairs} interface markers but zone {second} "
                f"declares {n_second}"
            )

        pairs = []
        for index in range(1, n_pairs + 1):
            marker_ids = []
            for zone_id in self.zone_pair:
                found = self.zone_configs[zone_id].find_interface_marker(index)
                if not found:
                    raise InterfaceTopologyError(
                        f"Zone {zone_id}: no matching interface marker for index {index}"
                    )
                if len(found) > 1:
                    raise InterfaceTopologyError(
                        f"Zone {zone_id}: interface index {index} is declared by "
                        f"{[m.name for m in found]}"
                    )
                try:
                    marker = self.zones[zone_id].get_marker(found[0].name)
                except ValueError:
                    raise InterfaceTopologyError(
                        f"Zone {zone_id}: interface marker '{found[0].name}' for index "
                        f"{index} is not present in the geometry"
                    ) from None
                if marker.vertex_count == 0:
                    raise InterfaceTopologyError(
                        f"Zone {zone_id}: interface marker '{marker.name}' has no vertices"
                    )
                marker_ids.append(marker.id)
            pairs.append((marker_ids[0], marker_ids[1]))
            logger.debug(
                "Interface %d: zone %d marker %d <-> zone %d marker %d",
                index,
                first,
                marker_ids[0],
                second,
                marker_ids[1],
            )
        return pairs

    def rebuild(self) -> None:
        """(Re)compute every donor record from the current geometry."""
        self.donor_table.clear()
        self.set_transfer_coefficients()
        self._check_donors()
        self._operators: Dict[int, List[Tuple[int, np.ndarray, np.ndarray, np.ndarray]]] = {}
        self._receiver_points: Dict[int, np.ndarray] = {}
        stats = self.summary()
        logger.info(
            "%s: %d interface vertices, %d-%d donors per vertex, weight sums in [%.6g, %.6g]",
            type(self).__name__,
            stats["n_vertices"],
            stats["min_donors"],
            stats["max_donors"],
            stats["min_weight_sum"],
            stats["max_weight_sum"],
        )

    @abstractmethod
    def set_transfer_coefficients(self) -> None:
        """Fill ``self.donor_table`` for every interface vertex of both zones."""

    def unit_weight_zones(self) -> Tuple[int, ...]:
        """Zones whose receiving vertices must have donor weights summing to 1."""
        return self.zone_pair

    def _check_donors(self) -> None:
        unit_zones = self.unit_weight_zones()
        tolerance = self.config.tolerance
        for zone_id, marker, vertex in self.interface_vertices():
            key = (zone_id, marker.id, vertex.index)
            if key not in self.donor_table or not self.donor_table.get(key):
                raise RuntimeError(
                    f"Zone {zone_id} marker '{marker.name}' vertex {vertex.index} has no donors"
                )
            for donor in self.donor_table.get(key):
                if donor.zone == zone_id:
                    raise RuntimeError(
                        f"Zone {zone_id} marker '{marker.name}' vertex {vertex.index} "
                        "references a donor in its own zone"
                    )
            if zone_id in unit_zones:
                weight_sum = self.donor_table.weight_sum(key)
                if abs(weight_sum - 1.0) > tolerance:
                    raise RuntimeError(
                        f"Zone {zone_id} marker '{marker.name}' vertex {vertex.index}: "
                        f"donor weights sum to {weight_sum:.16g}, expected 1 within {tolerance:g}"
                    )

    # =========================================================================
    # Queries
    # =========================================================================

    def interface_markers(self, zone: int) -> List[Marker]:
        """Interface markers of a zone, in interface-index order."""
        position = self.zone_pair.index(zone)
        return [self.zones[zone].markers[pair[position]] for pair in self.interface_pairs]

    def interface_vertices(self):
        """Iterate ``(zone_id, marker, vertex)`` over all interface vertices of both zones."""
        for zone_id in self.zone_pair:
            for marker in self.interface_markers(zone_id):
                for vertex in marker.vertices:
                    yield zone_id, marker, vertex

    def donors(self, zone: int, marker: int, vertex: int) -> List[Donor]:
        """Donor list of one receiving vertex."""
        return self.donor_table.get((zone, marker, vertex))

    def donor_vertex(self, donor: Donor) -> Vertex:
        return self.zones[donor.zone].markers[donor.marker].vertices[donor.vertex]

    def summary(self) -> Dict[str, Any]:
        """Donor statistics over all interface vertices."""
        counts, sums, distances = [], [], []
        for zone_id, marker, vertex in self.interface_vertices():
            key = (zone_id, marker.id, vertex.index)
            donors = self.donor_table.get(key)
            counts.append(len(donors))
            sums.append(self.donor_table.weight_sum(key))
            for d in donors:
                lever = vertex.coords - self.zones[d.zone].coords(d.point)
                distances.append(float(np.linalg.norm(lever)))
        return {
            "method": self.method.value,
            "n_vertices": len(counts),
            "min_donors": min(counts) if counts else 0,
            "max_donors": max(counts) if counts else 0,
            "min_weight_sum": min(sums) if sums else 0.0,
            "max_weight_sum": max(sums) if sums else 0.0,
            "max_donor_distance": max(distances) if distances else 0.0,
        }

    # =========================================================================
    # Data storage
    # =========================================================================

    def initialize_data(self, zone_ids: Sequence[int], n_vars: int) -> None:
        """
        Allocate zeroed ``n_vars``-long storage for every point of the listed zones.

        ``n_vars == 0`` leaves the storage unallocated: reads return 0.0 and
        writes are ignored with a warning.
        """
        self.data.allocate([self.zones[z] for z in zone_ids], n_vars)

    def get_data(self, zone: int, point: int, var: Optional[int] = None):
        """Read one component, or the whole vector when ``var`` is None."""
        return self.data.get(zone, point, var)

    def set_data(self, zone: int, point: int, var: int, value: float) -> None:
        self.data.set(zone, point, var, value)

    def set_point_data(self, zone: int, point: int, values: Sequence[float]) -> None:
        self.data.set_vector(zone, point, values)

    # =========================================================================
    # Transfer
    # =========================================================================

    def _transfer_operator(self, zone: int):
        """
        Flattened donor arrays of a receiving zone, grouped by donor zone.

        A point appearing on several interface markers keeps the donors of its
        last vertex.
        """
        if zone not in self._operators:
            by_point: Dict[int, List[Donor]] = {}
            for marker in self.interface_markers(zone):
                for vertex in marker.vertices:
                    by_point[vertex.point] = self.donor_table.get((zone, marker.id, vertex.index))

            groups: Dict[int, Tuple[List[int], List[int], List[float]]] = {}
            for point, donors in by_point.items():
                for donor in donors:
                    receivers, sources, weights = groups.setdefault(donor.zone, ([], [], []))
                    receivers.append(point)
                    sources.append(donor.point)
                    weights.append(donor.weight)

            self._operators[zone] = [
                (
                    donor_zone,
                    np.asarray(receivers, dtype=int),
                    np.asarray(sources, dtype=int),
                    np.asarray(weights, dtype=float),
                )
                for donor_zone, (receivers, sources, weights) in groups.items()
            ]
            self._receiver_points[zone] = np.asarray(list(by_point), dtype=int)
        return self._operators[zone]

    def propagate_data(self, zone: int) -> None:
        """
        Recompute the data of every interface point of ``zone`` from its donors.

        Receiver entries are zeroed, then ``weight * donor data`` is
        accumulated. Only the receiver entries are modified.
        """
        target = self.data.zone_array(zone)
        if target is None:
            logger.warning(
                "Data storage has not been initialized for zone %d; nothing to propagate", zone
            )
            return

        operator = self._transfer_operator(zone)
        target[self._receiver_points[zone]] = 0.0
        for donor_zone, receivers, sources, weights in operator:
            source = self.data.zone_array(donor_zone)
            if source is None:
                # Donors without storage read as zero
                logger.warning(
                    "Data storage has not been initialized for donor zone %d; "
                    "its contribution to zone %d is zero",
                    donor_zone,
                    zone,
                )
                continue
            np.add.at(target, receivers, weights[:, None] * source[sources])

    def propagate_displacement(self, zone: int) -> None:
        """
        Recompute the displacement of every interface vertex of ``zone``.

        The result overwrites ``vertex.displacement`` of the receiving zone.
        """
        dim = self.dimension
        new_disp = np.zeros(dim)
        lever = np.zeros(dim)

        for marker in self.interface_markers(zone):
            for vertex in marker.vertices:
                new_disp[:] = 0.0
                for donor in self.donor_table.get((zone, marker.id, vertex.index)):
                    source = self.donor_vertex(donor)
                    lever[:] = vertex.coords - self.zones[donor.zone].coords(donor.point)
                    new_disp += donor.weight * (
                        source.displacement + rotation_displacement(source.rotation, lever, dim)
                    )
                vertex.set_displacement(new_disp)
        logger.debug("Propagated displacement to zone %d", zone)

    def __repr__(self):
        return f"<{type(self).__name__} zones={self.zone_pair} interfaces={len(self.interface_pairs)}>"


def _by_id(items, attribute: str) -> Dict[int, Any]:
    if isinstance(items, Mapping):
        return dict(items)
    return {getattr(item, attribute): item for item in items}
