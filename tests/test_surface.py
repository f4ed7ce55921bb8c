from dataclasses import replace

import numpy as np
import pytest

from geoglobe.config import GlobeConfig
from geoglobe.errors import MalformedGeometry
from geoglobe.projection import cartesian_to_geographic_many
from geoglobe.surface import build_polygon_surface, flat_shape, triangulate

SQUARE = [[0, 0], [10, 0], [10, 10], [0, 10]]
HOLE = [[3, 3], [7, 3], [7, 7], [3, 7]]
BIG = [[0, 0], [20, 0], [20, 20], [0, 20]]


def face_centers(mesh):
    tris = mesh.faces.reshape(-1, 4)[:, 1:]
    return mesh.points[tris].mean(axis=1), tris


class TestFlatShape:
    def test_shell_is_counter_clockwise(self):
        clockwise = np.array(SQUARE[::-1], dtype=float)
        assert flat_shape([clockwise]).exterior.is_ccw

    def test_holes_are_kept(self):
        shape = flat_shape([np.array(SQUARE, float), np.array(HOLE, float)])
        assert len(shape.interiors) == 1
        assert shape.area == pytest.approx(100 - 16)

    def test_triangulation_covers_area(self):
        shape = flat_shape([np.array(SQUARE, float), np.array(HOLE, float)])
        mesh = triangulate(shape)
        assert mesh.is_all_triangles
        assert mesh.area == pytest.approx(shape.area)


class TestPolygonSurface:
    def test_vertices_lie_on_inflated_sphere(self):
        surface = build_polygon_surface([SQUARE])
        cfg = GlobeConfig()
        expected = cfg.radius * cfg.surface_inflation
        np.testing.assert_allclose(np.linalg.norm(surface.mesh.points, axis=1), expected, rtol=1e-9)

    def test_surface_offset_is_added(self, config):
        surface = build_polygon_surface([SQUARE], surface_offset=2.5, config=config)
        expected = config.radius * config.surface_inflation + 2.5
        np.testing.assert_allclose(np.linalg.norm(surface.mesh.points, axis=1), expected, rtol=1e-9)

    def test_tessellation_raises_vertex_density(self, config):
        rough = triangulate(flat_shape([np.array(SQUARE, float)]))
        surface = build_polygon_surface([SQUARE], config=config)
        assert surface.mesh.n_points > rough.n_points

    def test_area_limit_is_configurable(self, config):
        coarse = build_polygon_surface([BIG], config=replace(config, tessellate_max_area=100.0))
        fine = build_polygon_surface([BIG], config=replace(config, tessellate_max_area=1.0))
        assert fine.mesh.n_cells > coarse.mesh.n_cells

    def test_edge_limit_bounds_planar_edges(self, config):
        cfg = replace(config, tessellate_max_area=100.0, tessellate_passes=8)
        mesh = build_polygon_surface([BIG], config=cfg).mesh
        geo = cartesian_to_geographic_many(mesh.points)
        tris = mesh.faces.reshape(-1, 4)[:, 1:]
        edges = np.concatenate([geo[tris[:, i]] - geo[tris[:, (i + 1) % 3]] for i in range(3)])
        assert np.linalg.norm(edges, axis=1).max() <= cfg.tessellate_max_edge + 1e-6

    def test_faces_point_outward(self, config):
        mesh = build_polygon_surface([SQUARE], config=config).mesh
        centers, tris = face_centers(mesh)
        p0, p1, p2 = (mesh.points[tris[:, i]] for i in range(3))
        normals = np.cross(p1 - p0, p2 - p0)
        assert np.all(np.einsum("ij,ij->i", normals, centers) > 0)

    def test_point_normals_are_radial(self, config):
        mesh = build_polygon_surface([SQUARE], config=config).mesh
        radial = mesh.points / np.linalg.norm(mesh.points, axis=1, keepdims=True)
        dots = np.einsum("ij,ij->i", mesh.point_data["Normals"], radial)
        assert np.all(dots > 0.99)

    def test_hole_stays_empty(self, config):
        mesh = build_polygon_surface([SQUARE, HOLE], config=config).mesh
        centers, _ = face_centers(mesh)
        geo = cartesian_to_geographic_many(centers)
        inside = ((geo[:, 0] > 3.2) & (geo[:, 0] < 6.8) & (geo[:, 1] > 3.2) & (geo[:, 1] < 6.8))
        assert not inside.any()

    def test_covers_the_polygon(self, config):
        mesh = build_polygon_surface([SQUARE], config=config).mesh
        geo = cartesian_to_geographic_many(mesh.points)
        assert geo[:, 0].min() == pytest.approx(0.0, abs=1e-6)
        assert geo[:, 0].max() == pytest.approx(10.0, abs=1e-6)
        assert geo[:, 1].max() == pytest.approx(10.0, abs=1e-6)

    def test_centroid_of_square(self):
        surface = build_polygon_surface([SQUARE])
        assert surface.centroid == pytest.approx((5.0, 5.0))

    def test_centroid_ignores_holes(self, config):
        off_center_hole = [[1, 1], [2, 1], [2, 2], [1, 2]]
        surface = build_polygon_surface([SQUARE, off_center_hole], config=config)
        assert surface.centroid == pytest.approx((5.0, 5.0))

    def test_ring_with_two_points_fails(self):
        with pytest.raises(MalformedGeometry):
            build_polygon_surface([[[0, 0], [1, 1]]])

    def test_bad_hole_fails_before_building(self):
        with pytest.raises(MalformedGeometry):
            build_polygon_surface([SQUARE, [[3, 3], [4, 4]]])

    def test_no_rings_fails(self):
        with pytest.raises(MalformedGeometry):
            build_polygon_surface([])
