"""
Nearest-neighbour donor mapping.

Every interface vertex receives exactly one donor, the closest vertex of the
paired marker in the other zone, with weight 1.0. The map is built in both
directions and need not be symmetric or injective.

Distances are squared Euclidean distances in the active spatial dimension.
A strictly smaller distance replaces the current best, so on ties the first
scanned candidate (lowest local vertex index) wins. The kd-tree search
returns exactly the same donors as the brute-force scan.
"""

import logging
from typing import Tuple

import numpy as np
from scipy.spatial import cKDTree

from fsi_interp.core.config import InterpolationMethod, SearchAlgorithm
from fsi_interp.core.zone import Marker, Zone
from fsi_interp.interpolation.base import Interpolator
from fsi_interp.interpolation.donors import Donor

logger = logging.getLogger(__name__)


def nearest_vertex(candidates: np.ndarray, query: np.ndarray) -> Tuple[int, float]:
    """
    Brute-force nearest candidate.

    Parameters
    ----------
    candidates : ndarray, shape (n, dim)
        Candidate coordinates, in scan order.
    query : ndarray, shape (dim,)
        Query point.

    Returns
    -------
    index : int
        Index of the closest candidate (first one on ties).
    distance2 : float
        Squared distance to it.
    """
    d2 = np.sum((candidates - query) ** 2, axis=1)
    # argmin returns the first occurrence of the minimum
    index = int(np.argmin(d2))
    return index, float(d2[index])


class NearestVertexSearch:
    """
    Nearest-vertex queries against a fixed set of marker coordinates.

    Parameters
    ----------
    coords : ndarray, shape (n, dim)
        Candidate coordinates, in scan order.
    algorithm : str
        ``"brute_force"`` (O(n) per query) or ``"kdtree"``.
    """

    def __init__(self, coords: np.ndarray, algorithm: str = SearchAlgorithm.BRUTE_FORCE.value):
        self.coords = np.asarray(coords, dtype=float)
        if self.coords.shape[0] == 0:
            raise ValueError("Cannot search an empty set of vertices")
        self.algorithm = SearchAlgorithm(algorithm)
        self._tree = cKDTree(self.coords) if self.algorithm == SearchAlgorithm.KDTREE else None

    def query(self, point: np.ndarray) -> Tuple[int, float]:
        """Index of the nearest candidate and its squared distance."""
        point = np.asarray(point, dtype=float)
        if self._tree is None:
            return nearest_vertex(self.coords, point)

        distance, _ = self._tree.query(point)
        # Every candidate tied with the exact minimum lies inside this radius;
        # re-scan them in index order to keep the first-scanned tie-break.
        radius = distance * (1.0 + 1.0e-9) + 1.0e-300
        candidates = np.sort(np.asarray(self._tree.query_ball_point(point, radius), dtype=int))
        if candidates.size == 0:
            candidates = np.arange(self.coords.shape[0])
        local, d2 = nearest_vertex(self.coords[candidates], point)
        return int(candidates[local]), d2


def marker_coords(zone: Zone, marker: Marker) -> np.ndarray:
    """Coordinates of the vertices of a marker, shape (n_vertex, dim)."""
    if not marker.vertices:
        return np.zeros((0, zone.dimension))
    return np.array([v.coords for v in marker.vertices])


class NearestNeighborInterpolator(Interpolator):
    """Single-donor interpolation from the closest vertex of the other zone."""

    method = InterpolationMethod.NEAREST_NEIGHBOR

    def set_transfer_coefficients(self) -> None:
        first, second = (self.zones[z] for z in self.zone_pair)
        for marker_first, marker_second in self.interface_pairs:
            self._map_nearest(first, first.markers[marker_first], second, second.markers[marker_second])
            self._map_nearest(second, second.markers[marker_second], first, first.markers[marker_first])

    def _map_nearest(self, receiver: Zone, receiver_marker: Marker, donor: Zone, donor_marker: Marker) -> None:
        search = NearestVertexSearch(marker_coords(donor, donor_marker), self.config.search)
        for vertex in receiver_marker.vertices:
            j, _ = search.query(vertex.coords)
            donor_vertex = donor_marker.vertices[j]
            self.donor_table.set(
                (receiver.id, receiver_marker.id, vertex.index),
                [Donor(donor.id, donor_vertex.point, donor_marker.id, j, 1.0)],
            )
        logger.debug(
            "Nearest neighbour: zone %d marker '%s' <- zone %d marker '%s' (%d vertices)",
            receiver.id,
            receiver_marker.name,
            donor.id,
            donor_marker.name,
            receiver_marker.vertex_count,
        )
