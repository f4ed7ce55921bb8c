import math

import numpy as np
import pytest

from geoglobe.errors import MalformedGeometry
from geoglobe.projection import project, project_many
from geoglobe.sampling import (
    IDENTITY,
    correct_antimeridian,
    crosses_antimeridian,
    densify_ring,
    great_circle_path,
    linear_path,
    quaternion_between,
    rotate,
    sample_line,
    segment_divisions,
    slerp,
)


# ═══════════════════════════════════════════════════════════════════
# Quaternion helpers
# ═══════════════════════════════════════════════════════════════════

class TestQuaternions:
    def test_same_vector_is_identity(self):
        v = project(30, 40, 1.0)
        np.testing.assert_allclose(quaternion_between(v, v), IDENTITY, atol=1e-12)

    def test_rotation_maps_u_onto_v(self):
        u = project(0, 0, 1.0)
        v = project(60, 20, 1.0)
        q = quaternion_between(u, v)
        np.testing.assert_allclose(rotate(q, u)[0], v, atol=1e-12)

    def test_antipodal_vectors(self):
        u = np.array([1.0, 0.0, 0.0])
        q = quaternion_between(u, -u)
        np.testing.assert_allclose(rotate(q, u)[0], -u, atol=1e-12)

    def test_slerp_endpoints(self):
        q = quaternion_between(project(0, 0, 1.0), project(90, 0, 1.0))
        out = slerp(IDENTITY, q, [0.0, 1.0])
        np.testing.assert_allclose(out[0], IDENTITY, atol=1e-12)
        np.testing.assert_allclose(out[1], q, atol=1e-12)

    def test_slerp_has_constant_angular_speed(self):
        u = project(0, 0, 1.0)
        q = quaternion_between(u, project(90, 0, 1.0))
        pts = rotate(slerp(IDENTITY, q, np.linspace(0, 1, 5)), u)
        steps = [math.acos(np.clip(np.dot(a, b), -1, 1)) for a, b in zip(pts[:-1], pts[1:])]
        assert steps == pytest.approx([math.pi / 8] * 4)


# ═══════════════════════════════════════════════════════════════════
# Great-circle sampler
# ═══════════════════════════════════════════════════════════════════

class TestGreatCirclePath:
    def test_equator_segment_count_and_order(self):
        path = great_circle_path([[0, 0], [10, 0]])
        assert len(path) == math.ceil(10 * 8)
        assert np.all(np.diff(path[:, 0]) > 0)
        np.testing.assert_allclose(path[:, 1], 0.0, atol=1e-9)

    def test_first_vertex_included_last_excluded(self):
        path = great_circle_path([[0, 0], [10, 0]])
        np.testing.assert_allclose(path[0], [0, 0], atol=1e-9)
        assert path[-1, 0] < 10

    def test_include_end(self):
        path = great_circle_path([[0, 0], [10, 0]], include_end=True)
        assert len(path) == 81
        np.testing.assert_allclose(path[-1], [10, 0])

    def test_length_is_sum_of_divisions(self):
        pts = [[0, 0], [3, 4], [3, 10], [-2, 10]]
        expected = sum(segment_divisions(a, b, 8.0) for a, b in zip(pts[:-1], pts[1:]))
        assert len(great_circle_path(pts)) == expected

    def test_zero_length_segment_emits_one_point(self):
        assert len(great_circle_path([[5, 5], [5, 5]])) == 1

    def test_samples_stay_on_the_great_circle(self):
        a, b = [-30.0, 50.0], [40.0, 60.0]
        path = great_circle_path([a, b])
        normal = np.cross(project(*a), project(*b))
        normal /= np.linalg.norm(normal)
        np.testing.assert_allclose(project_many(path) @ normal, 0.0, atol=1e-9)

    def test_antimeridian_takes_short_way(self):
        path = great_circle_path([[170, 0], [-170, 0]])
        assert np.all(np.abs(path[:, 0]) >= 170 - 1e-9)

    def test_one_point_fails(self):
        with pytest.raises(MalformedGeometry):
            great_circle_path([[0, 0]])

    def test_non_numeric_fails(self):
        with pytest.raises(MalformedGeometry):
            great_circle_path([["a", 0], [1, 1]])


# ═══════════════════════════════════════════════════════════════════
# Linear sampler and antimeridian correction
# ═══════════════════════════════════════════════════════════════════

class TestAntimeridian:
    def test_crossing_detected(self):
        assert crosses_antimeridian(170, -170)
        assert crosses_antimeridian(-100, 95)

    def test_not_crossing(self):
        assert not crosses_antimeridian(10, -10)
        assert not crosses_antimeridian(170, 175)
        assert not crosses_antimeridian(170, -80)

    def test_correction_orders_and_shifts(self):
        first, second, corr = correct_antimeridian((-170.0, 5.0), (170.0, 1.0))
        assert corr == pytest.approx(190.0)
        assert first == (0.0, 1.0)
        assert second == pytest.approx((20.0, 5.0))

    def test_linear_path_crossing_stays_near_antimeridian(self):
        path = linear_path([[170, 0], [-170, 0]], divisions=20)
        assert len(path) == 20
        assert np.all(np.abs(path[:, 0]) >= 170 - 1e-9)
        assert path[0, 0] == pytest.approx(170.0)

    def test_linear_path_crossing_keeps_direction(self):
        path = linear_path([[-170, 0], [170, 0]], divisions=20)
        assert path[0, 0] == pytest.approx(-170.0)
        assert path[1, 0] < -170.0

    def test_every_pair_is_corrected(self):
        path = linear_path([[170, 0], [-170, 0], [170, 10]], divisions=10)
        assert np.all(np.abs(path[:, 0]) >= 170 - 1e-9)

    def test_linear_path_plain(self):
        path = linear_path([[0, 0], [10, 10]], divisions=10, include_end=True)
        np.testing.assert_allclose(path[:, 0], np.arange(11))
        np.testing.assert_allclose(path[:, 1], np.arange(11))

    def test_sample_line_picks_sampler(self):
        assert len(sample_line([[0, 0], [10, 0]], sampler="linear", divisions=5)) == 6
        assert len(sample_line([[0, 0], [10, 0]])) == 81


class TestDensifyRing:
    def test_closing_edge_is_sampled(self):
        dense = densify_ring([[0, 0], [10, 0], [10, 10], [0, 10]], divisions=10)
        assert len(dense) == 40
        np.testing.assert_allclose(dense[-1], [0, 1])

    def test_explicitly_closed_ring(self):
        open_ring = densify_ring([[0, 0], [10, 0], [10, 10]], divisions=4)
        closed_ring = densify_ring([[0, 0], [10, 0], [10, 10], [0, 0]], divisions=4)
        np.testing.assert_allclose(open_ring, closed_ring)

    def test_two_points_fail(self):
        with pytest.raises(MalformedGeometry):
            densify_ring([[0, 0], [1, 1]])

    def test_closed_ring_with_two_distinct_points_fails(self):
        with pytest.raises(MalformedGeometry):
            densify_ring([[0, 0], [1, 1], [0, 0]])
