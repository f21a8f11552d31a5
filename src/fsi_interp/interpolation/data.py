"""
Per-point data storage for the interface transfer.

A DataField owns one ``(n_points, n_vars)`` array per zone. Entries are
addressed by ``(zone, point)`` handles; bounds are the caller's
responsibility and are only checked by debug assertions.
"""

import logging
from typing import Dict, Iterable, Optional, Sequence, Union

import numpy as np

from fsi_interp.core.zone import Zone

logger = logging.getLogger(__name__)


class DataField:
    """
    Generic transferable quantity keyed by ``(zone, point)``.

    Until :meth:`allocate` is called with ``n_vars > 0`` the store is in the
    "no data" state: scalar reads return 0.0, vector reads return None and
    writes are ignored with a warning. The same applies, per zone, to zones
    left out of the last allocation.
    """

    def __init__(self):
        self._values: Optional[Dict[int, np.ndarray]] = None
        self._n_vars = 0

    def allocate(self, zones: Iterable[Zone], n_vars: int) -> None:
        """
        Allocate zeroed storage for every point of every zone.

        Parameters
        ----------
        zones : iterable of Zone
            Zones to allocate storage for.
        n_vars : int
            Length of the stored vectors. 0 leaves the store unallocated.
        """
        if n_vars < 0:
            raise ValueError(f"n_vars must be >= 0, got {n_vars}")
        self._n_vars = n_vars
        if n_vars == 0:
            self._values = None
            return
        self._values = {zone.id: np.zeros((zone.point_count, n_vars)) for zone in zones}

    @property
    def is_allocated(self) -> bool:
        return self._values is not None

    @property
    def n_vars(self) -> int:
        return self._n_vars

    def is_zone_allocated(self, zone: int) -> bool:
        return self._values is not None and zone in self._values

    def zone_array(self, zone: int) -> Optional[np.ndarray]:
        """The whole ``(n_points, n_vars)`` array of a zone, or None if it has no storage."""
        if not self.is_zone_allocated(zone):
            return None
        return self._values[zone]

    def get(self, zone: int, point: int, var: Optional[int] = None) -> Union[float, np.ndarray, None]:
        """Read one component, or the whole vector when ``var`` is None."""
        values = self.zone_array(zone)
        if values is None:
            return None if var is None else 0.0
        if var is None:
            return values[point]
        assert 0 <= var < self._n_vars, f"variable index {var} out of range"
        return float(values[point, var])

    def set(self, zone: int, point: int, var: int, value: float) -> None:
        values = self.zone_array(zone)
        if values is None:
            self._warn_unallocated(zone, point)
            return
        assert 0 <= var < self._n_vars, f"variable index {var} out of range"
        values[point, var] = value

    def set_vector(self, zone: int, point: int, values: Sequence[float]) -> None:
        target = self.zone_array(zone)
        if target is None:
            self._warn_unallocated(zone, point)
            return
        target[point, :] = values

    @staticmethod
    def _warn_unallocated(zone: int, point: int) -> None:
        logger.warning(
            "Data storage has not been initialized for zone %d; ignoring write to point %d",
            zone,
            point,
        )
