"""
Mesh entities module.

This module contains the fundamental building blocks for mesh representation:
- Node: A point in 3D space
- MeshElement: A connectivity element defined by nodes
- ElementType: Interface face types understood by the donor search
"""

from enum import IntEnum
from typing import Iterable, Optional, Sequence, Tuple, Union

import numpy as np


class ElementType(IntEnum):
    """Enumeration of supported interface face types.

    Values correspond to VTK cell type constants.
    """

    line = 3
    triangle = 5
    quad = 9


# Mapping from node count to face type (for automatic element type detection)
ELEMENT_NODES_MAP = {
    2: ElementType.line,
    3: ElementType.triangle,
    4: ElementType.quad,
}


class Node:
    """
    Represents a node with 3D coordinates.

    This class ensures that coordinates always include a z-value.
    If fewer than 3 coordinates are provided, zeros are appended.

    Attributes
    ----------
    coords : np.ndarray
        Array of coordinates in the form [x, y, z].
    x : float
        X coordinate.
    y : float
        Y coordinate.
    z : float
        Z coordinate.
    id : int
        Unique identifier for the node.
    """

    _id_counter = 0

    def __init__(self, coords: Union[Iterable[float], np.ndarray], id: Optional[int] = None):
        """
        Initialize a Node instance.

        Parameters
        ----------
        coords : list of float or np.ndarray
            Coordinates of the node. If fewer than 3 values are provided,
            the missing components are set to 0.0.
        id : int, optional
            Explicit node identifier. If omitted, a process-wide counter is used.
        """
        coords_arr = np.array(coords, dtype=float).ravel()
        if coords_arr.size > 3:
            raise ValueError(f"Node coordinates must have at most 3 components, got {coords_arr.size}")
        if coords_arr.size < 3:
            coords_arr = np.concatenate((coords_arr, np.zeros(3 - coords_arr.size)))
        self.coords = coords_arr
        self.x = coords_arr[0]
        self.y = coords_arr[1]
        self.z = coords_arr[2]
        if id is None:
            id = Node._id_counter
            Node._id_counter += 1
        self.id = id

    def __repr__(self):
        return f"<Node id={self.id} coords={self.coords.tolist()}>"


class MeshElement:
    """
    Represents a mesh element defined solely by node connectivity.

    Attributes
    ----------
    nodes : list of Nodes
        Ordered list of nodes that form the element.
    node_ids : tuple of int
        Node IDs that form the element.
    id : int
        Unique identifier for the element.
    element_type : ElementType
        Type of the element (line, triangle, quad).
    """

    _id_counter = 0

    def __init__(
        self,
        nodes: Sequence[Node],
        element_type: Optional[ElementType] = None,
        id: Optional[int] = None,
    ):
        """
        Initialize a MeshElement instance.

        Parameters
        ----------
        nodes : Sequence[Node]
            List of nodes defining the element connectivity.
        element_type : ElementType, optional
            Type of the element. Inferred from the node count when omitted.
        id : int, optional
            Explicit element identifier. If omitted, a process-wide counter is used.
        """
        if element_type is None:
            try:
                element_type = ELEMENT_NODES_MAP[len(nodes)]
            except KeyError:
                raise ValueError(f"Cannot infer element type from {len(nodes)} nodes")
        if id is None:
            id = MeshElement._id_counter
            MeshElement._id_counter += 1
        self.id = id
        self.nodes = list(nodes)
        self.element_type = element_type

    @property
    def node_ids(self) -> Tuple:
        """Get tuple of node IDs for this element."""
        return tuple([node.id for node in self.nodes])

    @property
    def node_count(self) -> int:
        """Get the number of nodes in this element."""
        return len(self.nodes)

    @property
    def node_coords(self) -> np.ndarray:
        """Get array of node coordinates for this element."""
        return np.array([node.coords for node in self.nodes])

    def __repr__(self):
        return f"<MeshElement id={self.id} type={self.element_type.name} node_ids={self.node_ids}>"
