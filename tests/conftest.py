import numpy as np
import pytest

from fsi_interp.core import MarkerConfig, MeshModel, Zone, ZoneConfig


def _make_zone(zone_id, coords, faces=(), name="interface", dimension=None):
    """Zone whose single marker holds every point and every element."""
    coords = np.asarray(coords, dtype=float)
    mesh = MeshModel.from_arrays(coords, [list(f) for f in faces], dimension=dimension)
    zone = Zone(zone_id, mesh)
    zone.add_marker(name, range(len(coords)))
    return zone


def _make_config(zone_id, name="interface", index=1):
    return ZoneConfig(zone_id, [MarkerConfig(name, index)])


def _grid(n, z=0.0):
    """n x n points over the unit square at height z, row-major."""
    xs = np.linspace(0.0, 1.0, n)
    return np.array([[x, y, z] for y in xs for x in xs])


def _grid_quads(n):
    return [
        (j * n + i, j * n + i + 1, (j + 1) * n + i + 1, (j + 1) * n + i)
        for j in range(n - 1)
        for i in range(n - 1)
    ]


def _grid_triangles(n):
    triangles = []
    for a, b, c, d in _grid_quads(n):
        triangles.append((a, b, c))
        triangles.append((a, c, d))
    return triangles


@pytest.fixture
def make_zone():
    return _make_zone


@pytest.fixture
def make_config():
    return _make_config


@pytest.fixture
def line_zones():
    """Two 2D zones sharing the segment y=0, x in [0, 1], with different spacing."""
    fluid = _make_zone(
        0,
        [[0.0, 0.0], [0.25, 0.0], [0.5, 0.0], [0.75, 0.0], [1.0, 0.0]],
        [(0, 1), (1, 2), (2, 3), (3, 4)],
    )
    solid = _make_zone(1, [[0.0, 0.01], [0.4, 0.01], [1.0, 0.01]], [(0, 1), (1, 2)])
    configs = [_make_config(0), _make_config(1)]
    return [fluid, solid], configs


@pytest.fixture
def surface_zones():
    """Two 3D zones on the unit square: a jittered triangle mesh above a quad mesh."""
    fluid_coords = _grid(4, z=0.01)
    fluid_coords[:, 2] += 0.002 * np.sin(7.0 * fluid_coords[:, 0] + 3.0 * fluid_coords[:, 1])
    fluid = _make_zone(0, fluid_coords, _grid_triangles(4))
    solid = _make_zone(1, _grid(3), _grid_quads(3))
    configs = [_make_config(0), _make_config(1)]
    return [fluid, solid], configs


@pytest.fixture
def triangle_zones():
    """3D zones: a quad mesh receiving from a triangulated surface."""
    fluid = _make_zone(0, _grid(5, z=-0.02), _grid_quads(5))
    solid = _make_zone(1, _grid(3), _grid_triangles(3))
    configs = [_make_config(0), _make_config(1)]
    return [fluid, solid], configs
