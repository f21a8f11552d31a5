"""
Tests for data and displacement transfer through the donor map, and for the
interface topology checks done when an interpolator is built.
"""

import logging
from dataclasses import replace

import numpy as np
import pytest

from fsi_interp import (
    CouplingConfig,
    InterfaceTopologyError,
    InterpolationConfig,
    MarkerConfig,
    ZoneConfig,
    create_interpolator,
)
from fsi_interp.interpolation import (
    ConsistentConservativeInterpolator,
    NearestNeighborInterpolator,
    rotation_displacement,
)

MAPPERS = [NearestNeighborInterpolator, ConsistentConservativeInterpolator]


def receiving_zones(interp):
    """Zones on which rigid motion is reproduced exactly."""
    if isinstance(interp, NearestNeighborInterpolator):
        return list(interp.zone_pair)
    return [interp.zone_pair[0]]


def rigid_motion(coords, translation, rotation, center):
    """Displacement u = t + rotation x (x - c) at one point."""
    lever = coords - center
    if len(coords) == 2:
        theta = rotation[2]
        return translation + np.array([-theta * lever[1], theta * lever[0]])
    return translation + np.cross(rotation, lever)


def impose_rigid_motion(zone, translation, rotation, center):
    for vertex in zone.vertices():
        vertex.set_displacement(rigid_motion(vertex.coords, translation, rotation, center))
        vertex.set_rotation(rotation)


class TestRotationDisplacement:
    def test_two_dimensional(self):
        result = rotation_displacement(np.array([0.0, 0.0, 2.0]), np.array([1.0, 3.0]), 2)
        np.testing.assert_allclose(result, [-6.0, 2.0])

    def test_three_dimensional(self):
        rotation = np.array([0.1, -0.2, 0.3])
        lever = np.array([1.0, 2.0, -1.0])
        np.testing.assert_allclose(rotation_displacement(rotation, lever, 3), np.cross(rotation, lever))


class TestPropagateData:
    @pytest.mark.parametrize("mapper", MAPPERS)
    def test_idempotent(self, line_zones, mapper):
        zones, configs = line_zones
        interp = mapper(zones, configs, [0, 1])
        for point in range(zones[1].point_count):
            interp.set_point_data(1, point, [point + 1.0, -2.0 * point])
        interp.propagate_data(0)
        first = interp.data.zone_array(0).copy()
        interp.propagate_data(0)
        np.testing.assert_array_equal(interp.data.zone_array(0), first)

    def test_nearest_copies_donor_value(self, line_zones):
        zones, configs = line_zones
        interp = NearestNeighborInterpolator(zones, configs, [0, 1], config=InterpolationConfig(n_vars=1))
        for point in range(zones[1].point_count):
            interp.set_data(1, point, 0, 10.0 * (point + 1))
        interp.propagate_data(0)
        # Solid vertices x = 0, 0.4, 1 feed fluid vertices x = 0, .25, .5, .75, 1
        values = [interp.get_data(0, p, 0) for p in range(zones[0].point_count)]
        assert values == [10.0, 20.0, 20.0, 30.0, 30.0]

    def test_donor_zone_untouched(self, line_zones):
        zones, configs = line_zones
        interp = ConsistentConservativeInterpolator(zones, configs, [0, 1])
        for point in range(zones[1].point_count):
            interp.set_point_data(1, point, [1.0, 2.0])
        before = interp.data.zone_array(1).copy()
        interp.propagate_data(0)
        np.testing.assert_array_equal(interp.data.zone_array(1), before)

    def test_non_interface_points_untouched(self, make_zone, make_config):
        fluid = make_zone(0, [[0.0, 0.0], [1.0, 0.0], [0.5, 1.0]], [(0, 1)], name="farfield")
        fluid.markers.clear()
        fluid.add_marker("interface", [0, 1])
        solid = make_zone(1, [[0.0, 0.0], [1.0, 0.0]], [(0, 1)])
        interp = NearestNeighborInterpolator([fluid, solid], [make_config(0), make_config(1)], [0, 1])
        interp.set_point_data(0, 2, [7.0, 7.0])
        interp.set_point_data(1, 0, [1.0, 1.0])
        interp.propagate_data(0)
        np.testing.assert_array_equal(interp.get_data(0, 2), [7.0, 7.0])
        np.testing.assert_array_equal(interp.get_data(0, 0), [1.0, 1.0])

    def test_shared_point_takes_last_vertex_donors(self, make_zone):
        fluid = make_zone(0, [[0.0, 0.0], [1.0, 0.0], [2.0, 0.0]], name="left")
        fluid.markers.clear()
        fluid.add_marker("left", [0, 1])
        fluid.add_marker("right", [1, 2])
        solid = make_zone(1, [[0.0, 0.0], [1.1, 0.0], [0.9, 0.0], [2.0, 0.0]], name="left")
        solid.markers.clear()
        solid.add_marker("left", [0, 1])
        solid.add_marker("right", [2, 3])
        configs = [
            ZoneConfig(0, [MarkerConfig("left", 1), MarkerConfig("right", 2)]),
            ZoneConfig(1, [MarkerConfig("left", 1), MarkerConfig("right", 2)]),
        ]
        interp = NearestNeighborInterpolator([fluid, solid], configs, [0, 1], config=InterpolationConfig(n_vars=1))
        for point, value in enumerate([1.0, 2.0, 3.0, 4.0]):
            interp.set_data(1, point, 0, value)
        interp.propagate_data(0)
        # Fluid point 1 lies on both markers; the "right" marker is visited last
        assert interp.get_data(0, 1, 0) == 3.0

    def test_uninitialized_data(self, line_zones, caplog):
        zones, configs = line_zones
        interp = NearestNeighborInterpolator(zones, configs, [0, 1])
        interp.initialize_data([0, 1], 0)
        assert not interp.data.is_allocated
        assert interp.get_data(0, 1, 0) == 0.0
        assert interp.get_data(0, 1) is None
        with caplog.at_level(logging.WARNING):
            interp.set_data(0, 1, 0, 5.0)
            interp.set_point_data(0, 1, [5.0, 5.0])
            interp.propagate_data(0)
        assert caplog.text.count("not been initialized") == 3
        assert interp.get_data(0, 1, 0) == 0.0

    def test_donor_zone_without_storage(self, line_zones, caplog):
        zones, configs = line_zones
        interp = NearestNeighborInterpolator(zones, configs, [0, 1])
        interp.initialize_data([0], 2)
        interp.set_point_data(0, 1, [5.0, 5.0])
        with caplog.at_level(logging.WARNING):
            interp.propagate_data(0)
            interp.set_data(1, 0, 0, 1.0)
        assert "donor zone 1" in caplog.text
        assert "not been initialized for zone 1" in caplog.text
        assert not interp.data.zone_array(0).any()
        assert interp.get_data(1, 0, 0) == 0.0
        assert interp.get_data(1, 0) is None

    def test_receiver_zone_without_storage(self, line_zones, caplog):
        zones, configs = line_zones
        interp = NearestNeighborInterpolator(zones, configs, [0, 1])
        interp.initialize_data([1], 2)
        with caplog.at_level(logging.WARNING):
            interp.propagate_data(0)
        assert "nothing to propagate" in caplog.text

    def test_negative_n_vars_rejected(self, line_zones):
        zones, configs = line_zones
        interp = NearestNeighborInterpolator(zones, configs, [0, 1])
        with pytest.raises(ValueError):
            interp.initialize_data([0, 1], -1)

    def test_get_set_round_trip(self, line_zones):
        zones, configs = line_zones
        interp = NearestNeighborInterpolator(zones, configs, [0, 1])
        interp.initialize_data([0, 1], 3)
        interp.set_data(1, 2, 1, 0.25)
        assert interp.get_data(1, 2, 1) == 0.25
        np.testing.assert_array_equal(interp.get_data(1, 2), [0.0, 0.25, 0.0])


class TestPropagateDisplacement:
    @pytest.mark.parametrize("mapper", MAPPERS)
    def test_rigid_translation(self, surface_zones, mapper):
        zones, configs = surface_zones
        interp = mapper(zones, configs, [0, 1])
        translation = np.array([0.1, -0.05, 0.2])
        for zone in zones:
            impose_rigid_motion(zone, translation, np.zeros(3), np.zeros(3))
        for zone_id in receiving_zones(interp):
            for vertex in zones[zone_id].vertices():
                vertex.displacement[:] = 0.0
            interp.propagate_displacement(zone_id)
            for vertex in zones[zone_id].vertices():
                np.testing.assert_allclose(vertex.displacement, translation, atol=1e-12)

    @pytest.mark.parametrize("mapper", MAPPERS)
    def test_rigid_rotation_2d(self, line_zones, mapper):
        zones, configs = line_zones
        interp = mapper(zones, configs, [0, 1])
        center = np.array([0.5, 0.3])
        rotation = np.array([0.0, 0.0, 0.01])
        for zone in zones:
            impose_rigid_motion(zone, np.zeros(2), rotation, center)
        for zone_id in receiving_zones(interp):
            for vertex in zones[zone_id].vertices():
                vertex.displacement[:] = 0.0
            interp.propagate_displacement(zone_id)
            for vertex in zones[zone_id].vertices():
                expected = rigid_motion(vertex.coords, np.zeros(len(center)), rotation, center)
                np.testing.assert_allclose(vertex.displacement, expected, atol=1e-12)

    @pytest.mark.parametrize("mapper", MAPPERS)
    def test_rigid_rotation_3d(self, surface_zones, mapper):
        zones, configs = surface_zones
        interp = mapper(zones, configs, [0, 1])
        center = np.array([0.2, 0.4, -0.1])
        rotation = np.array([0.01, -0.02, 0.03])
        for zone in zones:
            impose_rigid_motion(zone, np.zeros(3), rotation, center)
        for zone_id in receiving_zones(interp):
            for vertex in zones[zone_id].vertices():
                vertex.displacement[:] = 0.0
            interp.propagate_displacement(zone_id)
            for vertex in zones[zone_id].vertices():
                expected = rigid_motion(vertex.coords, np.zeros(len(center)), rotation, center)
                np.testing.assert_allclose(vertex.displacement, expected, atol=1e-12)

    def test_scalar_rotation_in_2d(self, make_zone, make_config):
        fluid = make_zone(0, [[1.0, 1.0]])
        solid = make_zone(1, [[0.0, 0.0]])
        interp = NearestNeighborInterpolator([fluid, solid], [make_config(0), make_config(1)], [0, 1])
        donor = solid.markers[0].vertices[0]
        donor.set_displacement([0.5, 0.0])
        donor.set_rotation(0.1)
        interp.propagate_displacement(0)
        np.testing.assert_allclose(fluid.markers[0].vertices[0].displacement, [0.4, 0.1])

    def test_donor_motion_unchanged(self, line_zones):
        zones, configs = line_zones
        interp = NearestNeighborInterpolator(zones, configs, [0, 1])
        for vertex in zones[1].vertices():
            vertex.set_displacement([0.0, 0.1 * vertex.index])
        interp.propagate_displacement(0)
        assert [v.displacement[1] for v in zones[1].vertices()] == pytest.approx([0.0, 0.1, 0.2])


class TestTopology:
    def test_requires_two_zones(self, line_zones):
        zones, configs = line_zones
        with pytest.raises(InterfaceTopologyError, match="exactly 2 zones"):
            NearestNeighborInterpolator(zones, configs, [0, 1], n_zone=3)

    def test_rejects_same_zone_twice(self, line_zones):
        zones, configs = line_zones
        with pytest.raises(InterfaceTopologyError, match="with itself"):
            NearestNeighborInterpolator(zones, configs, [0, 0])

    def test_rejects_unknown_zone(self, line_zones):
        zones, configs = line_zones
        with pytest.raises(InterfaceTopologyError, match="Zone 5"):
            NearestNeighborInterpolator(zones, configs, [0, 5])

    def test_unmatched_interface_index(self, line_zones, make_config):
        zones, _ = line_zones
        configs = [make_config(0, index=1), make_config(1, index=2)]
        with pytest.raises(InterfaceTopologyError, match="no matching interface marker for index 1"):
            NearestNeighborInterpolator(zones, configs, [0, 1])

    def test_no_interface_markers(self, line_zones, make_config):
        zones, _ = line_zones
        configs = [make_config(0, index=0), make_config(1)]
        with pytest.raises(InterfaceTopologyError, match="no interface markers"):
            ConsistentConservativeInterpolator(zones, configs, [0, 1])

    def test_interface_count_mismatch(self, line_zones, make_config):
        zones, _ = line_zones
        configs = [
            ZoneConfig(0, [MarkerConfig("interface", 1), MarkerConfig("other", 2)]),
            make_config(1),
        ]
        with pytest.raises(InterfaceTopologyError, match="2 interface markers"):
            NearestNeighborInterpolator(zones, configs, [0, 1])

    def test_dimension_mismatch(self, make_zone, make_config):
        flat = make_zone(0, [[0.0, 0.0], [1.0, 0.0]], [(0, 1)])
        solid = make_zone(1, [[0.0, 0.0, 0.0], [1.0, 0.0, 0.0]], [(0, 1)])
        with pytest.raises(InterfaceTopologyError, match="dimension"):
            NearestNeighborInterpolator([flat, solid], [make_config(0), make_config(1)], [0, 1])

    def test_marker_missing_from_geometry(self, line_zones, make_config):
        zones, _ = line_zones
        configs = [make_config(0), make_config(1, name="wall")]
        with pytest.raises(InterfaceTopologyError, match="'wall'"):
            NearestNeighborInterpolator(zones, configs, [0, 1])

    def test_topology_error_is_value_error(self):
        assert issubclass(InterfaceTopologyError, ValueError)


class HalfWeightInterpolator(NearestNeighborInterpolator):
    """Nearest-neighbour map with every weight halved."""

    def set_transfer_coefficients(self):
        super().set_transfer_coefficients()
        for key, donors in list(self.donor_table.items()):
            self.donor_table.set(key, [replace(d, weight=0.5) for d in donors])


class TestWeightCheck:
    def test_weights_must_sum_to_one(self, line_zones):
        zones, configs = line_zones
        with pytest.raises(RuntimeError, match="sum to 0.5"):
            HalfWeightInterpolator(zones, configs, [0, 1])

    def test_tolerance_from_config(self, line_zones):
        zones, configs = line_zones
        interp = HalfWeightInterpolator(
            zones, configs, [0, 1], config=InterpolationConfig(tolerance=0.6)
        )
        assert interp.summary()["max_weight_sum"] == 0.5

    def test_conservative_rows_are_exempt(self, line_zones):
        zones, configs = line_zones
        interp = ConsistentConservativeInterpolator(zones, configs, [0, 1])
        assert interp.unit_weight_zones() == (0,)
        sums = [interp.donor_table.weight_sum((1, 0, v.index)) for v in zones[1].markers[0].vertices]
        assert any(abs(s - 1.0) > 1e-3 for s in sums)


class TestRebuild:
    def test_rebuild_follows_moved_geometry(self, line_zones):
        zones, configs = line_zones
        interp = NearestNeighborInterpolator(zones, configs, [0, 1])
        assert interp.donors(0, 0, 3)[0].vertex == 2

        # Move solid vertex 1 from x=0.4 to x=0.7; the map is not updated implicitly
        zones[1].mesh.nodes[1].coords[0] = 0.7
        assert interp.donors(0, 0, 3)[0].vertex == 2
        interp.rebuild()
        assert interp.donors(0, 0, 3)[0].vertex == 1

    def test_rebuild_resets_transfer_operator(self, line_zones):
        zones, configs = line_zones
        interp = NearestNeighborInterpolator(zones, configs, [0, 1], config=InterpolationConfig(n_vars=1))
        for point in range(zones[1].point_count):
            interp.set_data(1, point, 0, float(point))
        interp.propagate_data(0)
        assert interp.get_data(0, 3, 0) == 2.0

        zones[1].mesh.nodes[1].coords[0] = 0.7
        interp.rebuild()
        interp.propagate_data(0)
        assert interp.get_data(0, 3, 0) == 1.0


class TestFactory:
    @pytest.fixture
    def coupling(self):
        return CouplingConfig.from_dict(
            {
                "interpolation": {"method": "consistent_conservative", "n_vars": 1},
                "zones": [
                    {"zone_id": 0, "markers": [{"name": "interface", "fsi_interface": 1}]},
                    {"zone_id": 1, "markers": [{"name": "interface", "fsi_interface": 1}]},
                ],
            }
        )

    def test_method_selects_class(self, line_zones, coupling):
        zones, _ = line_zones
        interp = create_interpolator(zones, coupling)
        assert isinstance(interp, ConsistentConservativeInterpolator)
        assert interp.data.n_vars == 1

    def test_zone_pair_order(self, line_zones, coupling):
        zones, _ = line_zones
        interp = create_interpolator({z.id: z for z in zones}, coupling, zone_pair=[1, 0])
        assert interp.zone_pair == (1, 0)
        # The solid is now the consistent receiver
        for vertex in zones[1].markers[0].vertices:
            donors = interp.donors(1, 0, vertex.index)
            assert sum(d.weight for d in donors) == pytest.approx(1.0)

    def test_nearest_by_default(self, line_zones, coupling):
        zones, _ = line_zones
        coupling.interpolation = InterpolationConfig()
        assert isinstance(create_interpolator(zones, coupling), NearestNeighborInterpolator)
