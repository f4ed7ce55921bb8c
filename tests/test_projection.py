import math

import numpy as np
import pytest

from geoglobe.projection import (
    cartesian_to_geographic,
    cartesian_to_geographic_many,
    cartesian_to_spherical,
    from_planar,
    haversine_distance,
    project,
    project_many,
    to_planar,
    to_spherical_azimuth,
    to_spherical_polar,
    unproject,
    wrap_longitude,
)


class TestSphericalAngles:
    def test_polar_angle_at_poles(self):
        assert to_spherical_polar(90) == pytest.approx(0.0)
        assert to_spherical_polar(-90) == pytest.approx(math.pi)

    def test_azimuth(self):
        assert to_spherical_azimuth(180) == pytest.approx(0.0)
        assert to_spherical_azimuth(0) == pytest.approx(math.pi)

    def test_unproject_is_exact_inverse(self):
        for lng, lat in [(0, 0), (-73.5, 40.7), (151.2, -33.9), (179.0, 89.0)]:
            theta = to_spherical_azimuth(lng)
            phi = to_spherical_polar(lat)
            assert unproject(theta, phi) == pytest.approx((lng, lat))


class TestProject:
    def test_north_pole_on_y_axis(self):
        np.testing.assert_allclose(project(0, 90, 200), [0, 200, 0], atol=1e-9)

    def test_south_pole_on_y_axis(self):
        np.testing.assert_allclose(project(0, -90, 200), [0, -200, 0], atol=1e-9)

    def test_prime_meridian_on_negative_x(self):
        np.testing.assert_allclose(project(0, 0, 1), [-1, 0, 0], atol=1e-12)

    def test_distance_from_center_is_radius(self):
        for lng, lat in [(12.5, 41.9), (-122.4, 37.8), (0, 0), (180, -45)]:
            assert np.linalg.norm(project(lng, lat, 6.5)) == pytest.approx(6.5)

    def test_no_wrapping_inside_project(self):
        np.testing.assert_allclose(project(190, 10, 1), project(-170, 10, 1), atol=1e-12)

    def test_vectorized_matches_scalar(self):
        coords = np.array([[0, 0], [45, 45], [-120, -30], [179.9, 89.9]])
        many = project_many(coords, 3.0)
        for row, (lng, lat) in zip(many, coords):
            np.testing.assert_allclose(row, project(lng, lat, 3.0), atol=1e-12)


class TestInverse:
    @pytest.mark.parametrize("lng,lat", [
        (0.0, 0.0), (10.0, 20.0), (-73.9857, 40.7484), (151.2093, -33.8688),
        (179.5, 0.0), (-179.5, -60.0), (90.0, 89.0),
    ])
    def test_round_trip(self, lng, lat):
        assert cartesian_to_geographic(project(lng, lat, 42.0)) == pytest.approx((lng, lat), abs=1e-9)

    def test_round_trip_vectorized(self):
        rng = np.random.default_rng(7)
        coords = np.column_stack([rng.uniform(-179, 179, 200), rng.uniform(-89, 89, 200)])
        back = cartesian_to_geographic_many(project_many(coords, 2.0))
        np.testing.assert_allclose(back, coords, atol=1e-9)

    def test_zero_vector_has_no_direction(self):
        with pytest.raises(ValueError):
            cartesian_to_spherical([0, 0, 0])

    def test_wrap_longitude(self):
        assert wrap_longitude(190.0) == pytest.approx(-170.0)
        assert wrap_longitude(-190.0) == pytest.approx(170.0)
        np.testing.assert_allclose(wrap_longitude(np.array([0.0, 360.0, -540.0])), [0.0, 0.0, -180.0])


class TestPlane:
    def test_planar_round_trip(self):
        coords = np.array([[10.0, 20.0], [-30.0, 5.0]])
        np.testing.assert_allclose(from_planar(to_planar(coords)), coords)

    def test_longitude_is_x(self):
        assert to_planar([[10.0, 20.0]])[0, 0] == 10.0

    def test_from_planar_ignores_z(self):
        np.testing.assert_allclose(from_planar([[1.0, 2.0, 0.0]]), [[1.0, 2.0]])


class TestHaversine:
    def test_quarter_meridian(self):
        assert haversine_distance([0, 0], [0, 90], radius=1.0) == pytest.approx(math.pi / 2)

    def test_same_point(self):
        assert haversine_distance([12.0, 34.0], [12.0, 34.0]) == pytest.approx(0.0)

    def test_across_antimeridian_is_short(self):
        d = haversine_distance([179.0, 0.0], [-179.0, 0.0], radius=1.0)
        assert d == pytest.approx(math.radians(2.0))
