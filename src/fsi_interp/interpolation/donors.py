"""
Donor records attached to interface vertices.
"""

from dataclasses import dataclass
from typing import Dict, Iterator, List, Tuple

VertexKey = Tuple[int, int, int]


@dataclass(frozen=True)
class Donor:
    """
    One contribution to a receiving vertex.

    Attributes
    ----------
    zone : int
        Donor zone ID (never the receiver's zone).
    point : int
        Global point index of the donor in its zone mesh.
    marker : int
        Marker ID of the donor.
    vertex : int
        Local vertex index of the donor within its marker.
    weight : float
        Transfer weight.
    """

    zone: int
    point: int
    marker: int
    vertex: int
    weight: float


class DonorTable:
    """Ordered donor lists keyed by receiver ``(zone, marker, vertex)``."""

    def __init__(self):
        self._donors: Dict[VertexKey, List[Donor]] = {}

    def set(self, key: VertexKey, donors: List[Donor]) -> None:
        self._donors[key] = list(donors)

    def append(self, key: VertexKey, donor: Donor) -> None:
        self._donors.setdefault(key, []).append(donor)

    def get(self, key: VertexKey) -> List[Donor]:
        return self._donors.get(key, [])

    def weight_sum(self, key: VertexKey) -> float:
        return sum(d.weight for d in self.get(key))

    def items(self) -> Iterator[Tuple[VertexKey, List[Donor]]]:
        return iter(self._donors.items())

    def clear(self) -> None:
        self._donors.clear()

    def __contains__(self, key: VertexKey) -> bool:
        return key in self._donors

    def __len__(self) -> int:
        return len(self._donors)
