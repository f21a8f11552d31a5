"""
Interface Coupling Configuration Module.

This module provides a YAML-based configuration system describing which
boundary markers of two zones form a coupling interface and how the donor map
between them is built.

Example YAML configuration:
    interpolation:
      method: "consistent_conservative"
      search: "kdtree"

    zones:
      - zone_id: 0
        markers:
          - name: "wing_fluid"
            fsi_interface: 1
          - name: "farfield"
      - zone_id: 1
        markers:
          - name: "wing_structure"
            fsi_interface: 1

Markers with ``fsi_interface: K`` (K >= 1) in both zones are paired into the
K-th interface; ``fsi_interface: 0`` (the default) marks a non-coupled
boundary. Zones may optionally carry inline geometry (``dimension``,
``points``, ``markers[*].vertices`` and ``markers[*].faces``), which is used by
the command line checker.
"""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml


class InterfaceTopologyError(ValueError):
    """Raised when the zone pair or the interface markers cannot be matched."""


# =============================================================================
# Enums
# =============================================================================


class InterpolationMethod(str, Enum):
    """Donor-map construction strategy."""

    NEAREST_NEIGHBOR = "nearest_neighbor"
    CONSISTENT_CONSERVATIVE = "consistent_conservative"


class SearchAlgorithm(str, Enum):
    """Nearest-vertex search algorithm."""

    BRUTE_FORCE = "brute_force"
    KDTREE = "kdtree"


# =============================================================================
# Configuration Data Classes
# =============================================================================


@dataclass
class MarkerConfig:
    """Configuration of one boundary marker."""

    name: str
    fsi_interface: int = 0
    # Optional inline geometry (point indices)
    vertices: Optional[List[int]] = None
    faces: Optional[List[List[int]]] = None

    def __post_init__(self):
        if not self.name:
            raise ValueError("Marker name must not be empty")
        if self.fsi_interface < 0:
            raise ValueError(
                f"Marker '{self.name}': fsi_interface must be >= 0, got {self.fsi_interface}"
            )

    @property
    def is_fsi_interface(self) -> bool:
        return self.fsi_interface > 0


@dataclass
class ZoneConfig:
    """Configuration of one zone: its markers and optional inline geometry."""

    zone_id: int
    markers: List[MarkerConfig] = field(default_factory=list)
    dimension: Optional[int] = None
    points: Optional[List[List[float]]] = None

    def __post_init__(self):
        names = [m.name for m in self.markers]
        if len(set(names)) != len(names):
            raise ValueError(f"Zone {self.zone_id}: duplicate marker names {names}")
        if self.dimension is not None and self.dimension not in (2, 3):
            raise ValueError(f"Zone {self.zone_id}: dimension must be 2 or 3, got {self.dimension}")

    @property
    def marker_count(self) -> int:
        return len(self.markers)

    @property
    def has_geometry(self) -> bool:
        return self.points is not None

    def is_fsi_interface(self, marker_name: str) -> bool:
        """Whether the named marker is a coupling surface."""
        return self.interface_index(marker_name) > 0

    def interface_index(self, marker_name: str) -> int:
        """Interface-pair index of the named marker (0 if not coupled or not listed)."""
        for marker in self.markers:
            if marker.name == marker_name:
                return marker.fsi_interface
        return 0

    def interface_markers(self) -> List[MarkerConfig]:
        """Markers flagged as coupling surfaces, in declaration order."""
        return [m for m in self.markers if m.is_fsi_interface]

    def find_interface_marker(self, index: int) -> List[MarkerConfig]:
        """All markers declaring the given interface-pair index."""
        return [m for m in self.markers if m.fsi_interface == index]


@dataclass
class InterpolationConfig:
    """Donor-map construction parameters.

    ``n_vars`` is the length of the transferred data vectors; None means the
    spatial dimension of the zones.
    """

    method: str = InterpolationMethod.NEAREST_NEIGHBOR.value
    search: str = SearchAlgorithm.BRUTE_FORCE.value
    n_vars: Optional[int] = None
    tolerance: float = 1.0e-10

    def __post_init__(self):
        if isinstance(self.method, InterpolationMethod):
            self.method = self.method.value
        if isinstance(self.search, SearchAlgorithm):
            self.search = self.search.value
        valid_methods = [m.value for m in InterpolationMethod]
        if self.method not in valid_methods:
            raise ValueError(f"Invalid interpolation method: {self.method}. Available: {valid_methods}")
        valid_search = [s.value for s in SearchAlgorithm]
        if self.search not in valid_search:
            raise ValueError(f"Invalid search algorithm: {self.search}. Available: {valid_search}")
        if self.n_vars is not None and self.n_vars < 0:
            raise ValueError(f"n_vars must be >= 0, got {self.n_vars}")
        if self.tolerance <= 0:
            raise ValueError(f"tolerance must be positive, got {self.tolerance}")


@dataclass
class CouplingConfig:
    """Complete interface coupling configuration."""

    zones: List[ZoneConfig]
    interpolation: InterpolationConfig = field(default_factory=InterpolationConfig)

    @classmethod
    def from_yaml(cls, yaml_path: Union[str, Path]) -> "CouplingConfig":
        """Load configuration from a YAML file.

        Parameters
        ----------
        yaml_path : str or Path
            Path to the YAML configuration file.

        Returns
        -------
        CouplingConfig
            Parsed configuration.
        """
        yaml_path = Path(yaml_path)
        if not yaml_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {yaml_path}")

        with open(yaml_path, "r") as f:
            data = yaml.safe_load(f)

        return cls.from_dict(data or {})

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CouplingConfig":
        """Create configuration from a dictionary."""
        interp_data = data.get("interpolation", {}) or {}
        interpolation = InterpolationConfig(
            method=interp_data.get("method", InterpolationMethod.NEAREST_NEIGHBOR.value),
            search=interp_data.get("search", SearchAlgorithm.BRUTE_FORCE.value),
            n_vars=interp_data.get("n_vars"),
            tolerance=float(interp_data.get("tolerance", 1.0e-10)),
        )

        zones_data = data.get("zones")
        if not zones_data:
            raise ValueError("Configuration requires a 'zones' list")

        zones = []
        for position, zone_data in enumerate(zones_data):
            markers = [
                MarkerConfig(
                    name=m.get("name", ""),
                    fsi_interface=int(m.get("fsi_interface", 0)),
                    vertices=m.get("vertices"),
                    faces=m.get("faces"),
                )
                for m in zone_data.get("markers", [])
            ]
            zones.append(
                ZoneConfig(
                    zone_id=int(zone_data.get("zone_id", position)),
                    markers=markers,
                    dimension=zone_data.get("dimension"),
                    points=zone_data.get("points"),
                )
            )

        return cls(zones=zones, interpolation=interpolation)

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary for serialization."""
        result: Dict[str, Any] = {
            "interpolation": {
                "method": self.interpolation.method,
                "search": self.interpolation.search,
                "tolerance": self.interpolation.tolerance,
            },
            "zones": [],
        }
        if self.interpolation.n_vars is not None:
            result["interpolation"]["n_vars"] = self.interpolation.n_vars

        for zone in self.zones:
            zone_dict: Dict[str, Any] = {"zone_id": zone.zone_id, "markers": []}
            if zone.dimension is not None:
                zone_dict["dimension"] = zone.dimension
            if zone.points is not None:
                zone_dict["points"] = [list(p) for p in zone.points]
            for marker in zone.markers:
                marker_dict: Dict[str, Any] = {"name": marker.name}
                if marker.fsi_interface:
                    marker_dict["fsi_interface"] = marker.fsi_interface
                if marker.vertices is not None:
                    marker_dict["vertices"] = list(marker.vertices)
                if marker.faces is not None:
                    marker_dict["faces"] = [list(f) for f in marker.faces]
                zone_dict["markers"].append(marker_dict)
            result["zones"].append(zone_dict)

        return result

    def save_yaml(self, yaml_path: Union[str, Path]) -> None:
        """Save configuration to YAML file.

        Parameters
        ----------
        yaml_path : str or Path
            Path to the output YAML file.
        """
        with open(yaml_path, "w") as f:
            yaml.dump(self.to_dict(), f, default_flow_style=False, sort_keys=False)

    @property
    def zone_pair(self) -> List[int]:
        """IDs of the zones, in declaration order."""
        return [zone.zone_id for zone in self.zones]

    def zone_configs(self) -> Dict[int, ZoneConfig]:
        """Zone configurations keyed by zone ID."""
        return {zone.zone_id: zone for zone in self.zones}

    def validate(self) -> List[str]:
        """Validate the configuration.

        Returns
        -------
        list of str
            List of validation warnings (empty if all OK).
        """
        warnings = []

        if len(self.zones) != 2:
            warnings.append(f"Interface coupling requires exactly 2 zones, got {len(self.zones)}")
            return warnings

        first, second = self.zones
        if first.zone_id == second.zone_id:
            warnings.append(f"Both zones share the ID {first.zone_id}")

        n_first = len(first.interface_markers())
        n_second = len(second.interface_markers())
        if n_first == 0:
            warnings.append(f"Zone {first.zone_id} declares no interface markers")
        if n_first != n_second:
            warnings.append(
                f"Zone {first.zone_id} declares {n_first} interface markers, "
                f"zone {second.zone_id} declares {n_second}"
            )

        for index in range(1, n_first + 1):
            for zone in self.zones:
                found = zone.find_interface_marker(index)
                if not found:
                    warnings.append(
                        f"Zone {zone.zone_id}: no matching interface marker for index {index}"
                    )
                elif len(found) > 1:
                    warnings.append(
                        f"Zone {zone.zone_id}: interface index {index} declared by "
                        f"{[m.name for m in found]}"
                    )

        return warnings

    def __str__(self) -> str:
        """Human-readable string representation."""
        lines = [
            "Interface Coupling Configuration",
            "=" * 40,
            f"Method: {self.interpolation.method} (search: {self.interpolation.search})",
        ]
        for zone in self.zones:
            lines.append(f"Zone {zone.zone_id}: {zone.marker_count} markers")
            for marker in zone.interface_markers():
                lines.append(f"  {marker.name} -> interface {marker.fsi_interface}")
        return "\n".join(lines)
