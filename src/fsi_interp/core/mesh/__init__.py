"""
Mesh package for fsi_interp.

This package provides the read-only geometry queried by the donor mappers:
- Mesh entities (Node, MeshElement, ElementType)
- Mesh model (MeshModel) with node ID to point index mapping

Usage
-----
>>> from fsi_interp.core.mesh import MeshModel
>>> mesh = MeshModel.from_arrays([[0.0, 0.0], [1.0, 0.0]], [[0, 1]])
>>> mesh.element_point_indices(mesh.elements[0])
(0, 1)
"""

from fsi_interp.core.mesh.entities import ELEMENT_NODES_MAP, ElementType, MeshElement, Node
from fsi_interp.core.mesh.model import MeshModel

__all__ = [
    "Node",
    "MeshElement",
    "ElementType",
    "ELEMENT_NODES_MAP",
    "MeshModel",
]
