"""
Coupling zones and their interface markers.

A Zone wraps the mesh of one coupled domain (fluid or structure) together with
its boundary markers. Each Marker lists its boundary vertices and the surface
faces that tile it; each Vertex carries the displacement and rotation state
written by a solver and read or overwritten by the interface transfer.
"""

import logging
from typing import Dict, Iterable, Iterator, List, Optional, Sequence, Tuple

import numpy as np

from fsi_interp.core.config import CouplingConfig
from fsi_interp.core.mesh import MeshModel, Node

logger = logging.getLogger(__name__)


class Vertex:
    """
    A boundary point of a marker.

    Parameters
    ----------
    zone : int
        Zone ID owning the vertex.
    marker : int
        Marker ID within the zone.
    index : int
        Local vertex index within the marker.
    point : int
        Global point index in the zone mesh.
    node : Node
        Mesh node the vertex refers to (coordinates are read from it).
    dimension : int
        Spatial dimension of the zone.
    """

    def __init__(self, zone: int, marker: int, index: int, point: int, node: Node, dimension: int):
        self.zone = zone
        self.marker = marker
        self.index = index
        self.point = point
        self.node = node
        self.dimension = dimension
        self.displacement = np.zeros(dimension)
        # Rotation always has 3 components; in 2D only the z component is used
        self.rotation = np.zeros(3)

    @property
    def coords(self) -> np.ndarray:
        """Vertex coordinates in the active dimension."""
        return self.node.coords[: self.dimension]

    def set_displacement(self, displacement: Sequence[float]) -> None:
        """Overwrite the displacement (copied into the vertex buffer)."""
        self.displacement[:] = np.asarray(displacement, dtype=float)[: self.dimension]

    def set_rotation(self, rotation: Sequence[float]) -> None:
        """Overwrite the rotation vector. A scalar sets the out-of-plane component."""
        rotation = np.atleast_1d(np.asarray(rotation, dtype=float))
        if rotation.size == 1:
            self.rotation[:] = 0.0
            self.rotation[2] = rotation[0]
        else:
            self.rotation[:] = 0.0
            self.rotation[: rotation.size] = rotation

    def __repr__(self):
        return (
            f"<Vertex zone={self.zone} marker={self.marker} index={self.index} "
            f"point={self.point}>"
        )


class Marker:
    """
    A named boundary subset of a zone.

    Attributes
    ----------
    id : int
        Marker ID (position in the zone's marker list).
    name : str
        Marker name, matched against the zone configuration.
    vertices : list of Vertex
        Boundary vertices, ordered by local index.
    faces : list of tuple of int
        Surface faces tiling the marker, as ordered point indices.
    """

    def __init__(self, id: int, name: str, vertices: List[Vertex], faces: List[Tuple[int, ...]]):
        self.id = id
        self.name = name
        self.vertices = vertices
        self.faces = faces
        self._point_to_vertex: Dict[int, int] = {v.point: v.index for v in vertices}
        self._incident_faces: Optional[List[List[int]]] = None

    @property
    def vertex_count(self) -> int:
        return len(self.vertices)

    def vertex_index_of(self, point: int) -> int:
        """Local vertex index of a global point on this marker."""
        try:
            return self._point_to_vertex[point]
        except KeyError:
            raise ValueError(f"Point {point} is not on marker '{self.name}'")

    def has_point(self, point: int) -> bool:
        return point in self._point_to_vertex

    def incident_faces(self, vertex_index: int) -> List[int]:
        """Indices into ``faces`` of the faces touching a vertex."""
        if self._incident_faces is None:
            incident: List[List[int]] = [[] for _ in self.vertices]
            for f, face in enumerate(self.faces):
                for point in face:
                    incident[self._point_to_vertex[point]].append(f)
            self._incident_faces = incident
        return self._incident_faces[vertex_index]

    def __repr__(self):
        return f"<Marker id={self.id} name={self.name!r} vertices={self.vertex_count} faces={len(self.faces)}>"


class Zone:
    """
    One coupled domain: a zone ID, its mesh and its boundary markers.

    Zones are created and owned by the simulation driver; the interpolators
    only hold references to them.

    Parameters
    ----------
    id : int
        Zone identifier.
    mesh : MeshModel
        Mesh of the zone.

    Examples
    --------
    >>> mesh = MeshModel.from_arrays([[0, 0], [1, 0], [2, 0]], [[0, 1], [1, 2]])
    >>> zone = Zone(0, mesh)
    >>> marker = zone.add_marker("wall", points=[0, 1, 2])
    >>> marker.incident_faces(1)
    [0, 1]
    """

    def __init__(self, id: int, mesh: MeshModel):
        self.id = id
        self.mesh = mesh
        self.markers: List[Marker] = []

    @property
    def dimension(self) -> int:
        return self.mesh.dimension

    @property
    def point_count(self) -> int:
        return self.mesh.node_count

    @property
    def marker_count(self) -> int:
        return len(self.markers)

    def coords(self, point: int) -> np.ndarray:
        """Coordinates of a global point in the active dimension."""
        return self.mesh.nodes[point].coords[: self.dimension]

    def add_marker(
        self,
        name: str,
        points: Iterable[int],
        faces: Optional[Iterable[Sequence[int]]] = None,
    ) -> Marker:
        """
        Register a boundary marker.

        Parameters
        ----------
        name : str
            Marker name; must be unique within the zone.
        points : iterable of int
            Global point indices of the marker vertices, in local order.
        faces : iterable of sequences of int, optional
            Surface faces as point indices. When omitted, every mesh element
            whose points all lie on the marker is used.

        Returns
        -------
        Marker
            The new marker, with ID equal to its position in the zone.
        """
        if any(m.name == name for m in self.markers):
            raise ValueError(f"Marker '{name}' already exists in zone {self.id}.")

        marker_id = len(self.markers)
        points = [int(p) for p in points]
        if len(set(points)) != len(points):
            raise ValueError(f"Marker '{name}' lists a point more than once.")
        vertices = [
            Vertex(self.id, marker_id, i, p, self.mesh.nodes[p], self.dimension)
            for i, p in enumerate(points)
        ]

        point_set = set(points)
        if faces is None:
            face_list = []
            for element in self.mesh.elements:
                conn = self.mesh.element_point_indices(element)
                if all(p in point_set for p in conn):
                    face_list.append(conn)
        else:
            face_list = [tuple(int(p) for p in face) for face in faces]
            for face in face_list:
                missing = [p for p in face if p not in point_set]
                if missing:
                    raise ValueError(
                        f"Face {face} of marker '{name}' references points {missing} "
                        "that are not marker vertices."
                    )

        marker = Marker(marker_id, name, vertices, face_list)
        self.markers.append(marker)
        logger.debug("Zone %d: added %r", self.id, marker)
        return marker

    def get_marker(self, name: str) -> Marker:
        """Retrieve a marker by its name."""
        for marker in self.markers:
            if marker.name == name:
                return marker
        raise ValueError(f"Marker '{name}' not found in zone {self.id}.")

    def vertices(self, marker_ids: Optional[Iterable[int]] = None) -> Iterator[Vertex]:
        """Iterate over the vertices of the given markers (all markers by default)."""
        markers = self.markers if marker_ids is None else [self.markers[m] for m in marker_ids]
        for marker in markers:
            yield from marker.vertices

    def reset_motion(self) -> None:
        """Zero the displacement and rotation state of every vertex."""
        for vertex in self.vertices():
            vertex.displacement[:] = 0.0
            vertex.rotation[:] = 0.0

    def __repr__(self):
        return f"<Zone id={self.id} points={self.point_count} markers={self.marker_count}>"


def zones_from_config(config: CouplingConfig) -> Dict[int, Zone]:
    """
    Build zones from the inline geometry of a coupling configuration.

    Every zone must provide ``points``; mesh elements are the union of the
    marker faces. Markers without ``vertices`` use the points of their faces.

    Returns
    -------
    Dict[int, Zone]
        Zones keyed by zone ID.
    """
    zones: Dict[int, Zone] = {}
    for zone_config in config.zones:
        if not zone_config.has_geometry:
            raise ValueError(f"Zone {zone_config.zone_id} has no inline 'points' geometry")

        n_points = len(zone_config.points)
        connectivity = []
        for marker in zone_config.markers:
            _check_point_indices(zone_config.zone_id, marker.name, marker.faces or [], n_points)
            if marker.vertices is not None:
                _check_point_indices(zone_config.zone_id, marker.name, [marker.vertices], n_points)
            connectivity.extend(marker.faces or [])
        mesh = MeshModel.from_arrays(
            zone_config.points, connectivity, dimension=zone_config.dimension
        )
        zone = Zone(zone_config.zone_id, mesh)

        for marker in zone_config.markers:
            faces = marker.faces or []
            points = marker.vertices
            if points is None:
                points = list(dict.fromkeys(p for face in faces for p in face))
            zone.add_marker(marker.name, points, faces)

        zones[zone.id] = zone
    return zones


def _check_point_indices(
    zone: int, marker: str, groups: Sequence[Sequence[int]], n_points: int
) -> None:
    for group in groups:
        for point in group:
            if not 0 <= point < n_points:
                raise ValueError(
                    f"Zone {zone} marker '{marker}': point index {point} out of range "
                    f"for {n_points} points"
                )
