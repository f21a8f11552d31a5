"""
MeshModel class module.

This module contains the MeshModel class that represents the mesh of one
coupled zone: nodes and the connectivity elements the marker faces are
built from.
"""

from __future__ import annotations

from typing import Dict, Iterable, List, Optional, Sequence

import numpy as np

from fsi_interp.core.mesh.entities import MeshElement, Node


class MeshModel:
    """
    Represents a mesh composed of nodes and connectivity elements.

    Points are addressed by their array index (the "point id" used by donor
    records and data storage); ``node_id_to_index`` translates node IDs into
    point indices when IDs are not consecutive.

    Attributes
    ----------
    nodes : list of Node
        List of nodes in the mesh. Use add_node() to add new nodes.
    elements : list of MeshElement
        List of connectivity elements in the mesh. Use add_element() to add new elements.
    node_map : dict
        Dictionary mapping node IDs to Node instances.
    element_map : dict
        Dictionary mapping element IDs to MeshElement instances.
    dimension : int
        Active spatial dimension (2 or 3).
    """

    def __init__(
        self,
        nodes: Iterable[Node] | None = None,
        elements: Optional[List[MeshElement]] = None,
        dimension: int = 3,
    ):
        """
        Initialize a MeshModel instance.

        Parameters
        ----------
        nodes : list of Node, optional
            Initial list of nodes (default is None, which creates an empty list).
        elements : list of MeshElement, optional
            Initial list of connectivity elements (default is None, which creates an empty list).
        dimension : int, optional
            Spatial dimension of the mesh, 2 or 3. Default is 3.

        Raises
        ------
        ValueError
            If duplicate node or element IDs are found in the initial lists,
            or if the dimension is not 2 or 3.
        """
        if dimension not in (2, 3):
            raise ValueError(f"Mesh dimension must be 2 or 3, got {dimension}")
        self.dimension = dimension

        # Use copies of input lists to avoid external modifications
        self.nodes = list(nodes) if nodes is not None else []
        self.elements = list(elements) if elements is not None else []

        self.node_map: Dict[int, Node] = {}
        self.element_map: Dict[int, MeshElement] = {}

        seen_node_ids = set()
        for node in self.nodes:
            if node.id in seen_node_ids:
                raise ValueError(f"Duplicate node ID {node.id} in initial nodes list.")
            seen_node_ids.add(node.id)
            self.node_map[node.id] = node

        seen_element_ids = set()
        for element in self.elements:
            if element.id in seen_element_ids:
                raise ValueError(f"Duplicate element ID {element.id} in initial elements list.")
            seen_element_ids.add(element.id)
            self.element_map[element.id] = element

        # Cache, invalidated when nodes change
        self._node_id_to_index_cache: Optional[Dict[int, int]] = None

    @classmethod
    def from_arrays(
        cls,
        coords: Sequence[Sequence[float]],
        connectivity: Optional[Sequence[Sequence[int]]] = None,
        dimension: Optional[int] = None,
    ) -> "MeshModel":
        """
        Build a mesh from a coordinate array and point-index connectivity.

        Parameters
        ----------
        coords : array-like, shape (n, 2) or (n, 3)
            Point coordinates. Node IDs are assigned as 0..n-1.
        connectivity : sequence of sequences of int, optional
            Element definitions as point indices.
        dimension : int, optional
            Spatial dimension. Defaults to the number of coordinate columns.
        """
        coords = np.atleast_2d(np.asarray(coords, dtype=float))
        if dimension is None:
            dimension = coords.shape[1]
        nodes = [Node(xyz, id=i) for i, xyz in enumerate(coords)]
        elements = [
            MeshElement([nodes[i] for i in conn], id=e)
            for e, conn in enumerate(connectivity or [])
        ]
        return cls(nodes, elements, dimension=dimension)

    # =========================================================================
    # ID-to-Index Mapping
    # =========================================================================

    @property
    def node_id_to_index(self) -> Dict[int, int]:
        """
        Mapping from node IDs to consecutive array indices (0-based).

        Returns
        -------
        Dict[int, int]
            Dictionary mapping node.id -> array index in self.nodes
        """
        if self._node_id_to_index_cache is None:
            self._node_id_to_index_cache = {node.id: idx for idx, node in enumerate(self.nodes)}
        return self._node_id_to_index_cache

    def get_node_index(self, node_id: int) -> int:
        """Get the array index for a node given its ID."""
        return self.node_id_to_index[node_id]

    def element_point_indices(self, element: MeshElement) -> tuple:
        """Point indices of the nodes of ``element``, in element order."""
        return tuple(self.node_id_to_index[node.id] for node in element.nodes)

    # =========================================================================
    # Add/Get Methods
    # =========================================================================

    def add_node(self, node: Node):
        """Add a node to the mesh and update the cache."""
        if node.id in self.node_map:
            raise ValueError(f"Node with id {node.id} already exists.")
        self.nodes.append(node)
        self.node_map[node.id] = node
        self._node_id_to_index_cache = None

    def add_element(self, element: MeshElement):
        """Add a connectivity element to the mesh."""
        if element.id in self.element_map:
            raise ValueError(f"Element with id {element.id} already exists.")
        self.elements.append(element)
        self.element_map[element.id] = element

    def get_node_by_id(self, node_id: int) -> Node:
        """Retrieve a node by its ID."""
        try:
            return self.node_map[node_id]
        except KeyError:
            raise ValueError(f"Node with id {node_id} not found.")

    @property
    def node_count(self) -> int:
        """Number of nodes in the mesh."""
        return len(self.nodes)

    @property
    def elements_count(self) -> int:
        """Number of elements in the mesh."""
        return len(self.elements)

    @property
    def coords_array(self) -> np.ndarray:
        """Nodal coordinates restricted to the active dimension, shape (n, dimension)."""
        if not self.nodes:
            return np.zeros((0, self.dimension))
        return np.array([node.coords[: self.dimension] for node in self.nodes])

    def __repr__(self) -> str:
        return (
            f"<MeshModel: {self.node_count} nodes, {self.elements_count} elements, "
            f"dimension={self.dimension}>"
        )
