"""
Element-based consistent/conservative donor mapping.

Consistent direction (second zone -> first zone)
    Each vertex of the first zone is projected onto the surface faces of the
    paired marker. The search starts from the nearest vertex of that marker:
    only the faces incident to it are examined and the face with the closest
    projected point wins. The donors are the corners of that face and the
    weights are the face shape functions at the projected point, so they sum
    to one and a uniform field is reproduced exactly. If no face projection is
    strictly closer than the nearest vertex itself (or the vertex has no
    incident faces), that vertex becomes the single donor with weight 1.0.

Conservative direction (first zone -> second zone)
    The consistent map is inverted: every ``(receiver, corner, w)`` entry
    registers the receiver of the first zone as a donor of the corner vertex
    with the same weight. For each first-zone vertex the weights it hands out
    sum to one, so the total of a transferred load is preserved::

        sum(F_second) == sum(F_first)

    A second-zone vertex that no first-zone vertex references gets its nearest
    first-zone vertex as donor with weight 0.0 (it receives no load).
"""

import logging
from typing import Optional, Tuple

from fsi_interp.core.config import InterpolationMethod
from fsi_interp.core.zone import Marker, Zone
from fsi_interp.interpolation.base import Interpolator
from fsi_interp.interpolation.donors import Donor
from fsi_interp.interpolation.nearest import NearestVertexSearch, marker_coords
from fsi_interp.interpolation.projection import Projection, project_to_face

logger = logging.getLogger(__name__)


class ConsistentConservativeInterpolator(Interpolator):
    """Face projection with shape-function weights and a reciprocal conservative map."""

    method = InterpolationMethod.CONSISTENT_CONSERVATIVE

    def unit_weight_zones(self) -> Tuple[int, ...]:
        # Reciprocal rows carry conservative weights and need not sum to 1
        return (self.zone_pair[0],)

    def set_transfer_coefficients(self) -> None:
        first, second = (self.zones[z] for z in self.zone_pair)
        for marker_first, marker_second in self.interface_pairs:
            receiver_marker = first.markers[marker_first]
            donor_marker = second.markers[marker_second]
            self._map_consistent(first, receiver_marker, second, donor_marker)
            self._map_conservative(first, receiver_marker, second, donor_marker)

    def _closest_face(
        self, zone: Zone, marker: Marker, nearest: int, point, nearest_d2: float
    ) -> Tuple[int, Optional[Projection]]:
        """Face incident to ``nearest`` whose projection of ``point`` is closest.

        Returns ``(-1, None)`` when no face projection beats the vertex distance.
        """
        best_face, best = -1, None
        best_d2 = nearest_d2
        for f in marker.incident_faces(nearest):
            face = marker.faces[f]
            projection = project_to_face(point, [zone.coords(p) for p in face])
            if projection is not None and projection.distance2 < best_d2:
                best_face, best, best_d2 = f, projection, projection.distance2
        return best_face, best

    def _map_consistent(self, first: Zone, receiver_marker: Marker, second: Zone, donor_marker: Marker) -> None:
        search = NearestVertexSearch(marker_coords(second, donor_marker), self.config.search)
        n_fallback = 0

        for vertex in receiver_marker.vertices:
            nearest, d2 = search.query(vertex.coords)
            face_id, projection = self._closest_face(second, donor_marker, nearest, vertex.coords, d2)

            if projection is None:
                n_fallback += 1
                donors = [
                    Donor(second.id, donor_marker.vertices[nearest].point, donor_marker.id, nearest, 1.0)
                ]
            else:
                donors = [
                    Donor(second.id, point, donor_marker.id, donor_marker.vertex_index_of(point), float(w))
                    for point, w in zip(donor_marker.faces[face_id], projection.weights)
                ]
            self.donor_table.set((first.id, receiver_marker.id, vertex.index), donors)

        logger.debug(
            "Consistent map: zone %d marker '%s' <- zone %d marker '%s' "
            "(%d vertices, %d nearest-vertex fallbacks)",
            first.id,
            receiver_marker.name,
            second.id,
            donor_marker.name,
            receiver_marker.vertex_count,
            n_fallback,
        )

    def _map_conservative(self, first: Zone, receiver_marker: Marker, second: Zone, donor_marker: Marker) -> None:
        for vertex in receiver_marker.vertices:
            for donor in self.donor_table.get((first.id, receiver_marker.id, vertex.index)):
                self.donor_table.append(
                    (second.id, donor_marker.id, donor.vertex),
                    Donor(first.id, vertex.point, receiver_marker.id, vertex.index, donor.weight),
                )

        unreferenced = [
            v
            for v in donor_marker.vertices
            if (second.id, donor_marker.id, v.index) not in self.donor_table
        ]
        if unreferenced:
            search = NearestVertexSearch(marker_coords(first, receiver_marker), self.config.search)
            for vertex in unreferenced:
                j, _ = search.query(vertex.coords)
                source = receiver_marker.vertices[j]
                self.donor_table.set(
                    (second.id, donor_marker.id, vertex.index),
                    [Donor(first.id, source.point, receiver_marker.id, j, 0.0)],
                )
            logger.warning(
                "Zone %d marker '%s': %d vertices are not referenced by zone %d and receive "
                "a zero-weight donor",
                second.id,
                donor_marker.name,
                len(unreferenced),
                first.id,
            )
