"""
Polygon surfaces draped over the sphere.

A polygon is built as a flat shape in longitude/latitude space, triangulated,
tessellated until no edge is longer than a few degrees, and only then
projected onto the sphere. The dense tessellation is what keeps the projected
surface from showing facets.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

import numpy as np
import pyvista as pv
import shapely
from shapely.geometry import Polygon
from shapely.geometry.polygon import orient

from .config import GlobeConfig
from .errors import MalformedGeometry
from .projection import from_planar, project_many, to_planar
from .sampling import as_points, densify_ring

LOGGER = logging.getLogger(__name__)


@dataclass
class PolygonSurface:
    mesh: pv.PolyData
    centroid: Tuple[float, float]
    outer: np.ndarray  # densified outer ring, [lng, lat]


def validate_rings(rings: Sequence) -> List[np.ndarray]:
    """Check every ring before anything is built."""
    if len(rings) == 0:
        raise MalformedGeometry("A polygon needs an outer ring")
    return [as_points(ring, 3, "a ring in a polygon") for ring in rings]


def flat_shape(dense_rings: Sequence[np.ndarray]) -> Polygon:
    """
    Build the flat shape: ring 0 is the shell, the others are holes.

    The shape is oriented with a counter-clockwise shell and clockwise holes.
    """
    shell = to_planar(dense_rings[0])
    holes = [to_planar(ring) for ring in dense_rings[1:]]
    return orient(Polygon(shell, holes), sign=1.0)


def triangulate(shape: Polygon) -> pv.PolyData:
    """
    Triangulate a flat shape into an indexed mesh in the z=0 plane.

    Uses a constrained Delaunay triangulation, so ring edges are kept and
    holes stay empty.
    """
    triangles = shapely.constrained_delaunay_triangles(shape)
    corners = np.array(
        [tri.exterior.coords[:3] for tri in triangles.geoms], dtype=float
    ).reshape(-1, 2)
    if len(corners) == 0:
        raise MalformedGeometry("Polygon has no area to triangulate")

    planar, inverse = np.unique(corners, axis=0, return_inverse=True)
    tris = inverse.reshape(-1, 3)

    points = np.column_stack([planar, np.zeros(len(planar))])
    faces = np.hstack([np.full((len(tris), 1), 3), tris]).ravel()
    return pv.PolyData(points, faces)


def tessellate(mesh: pv.PolyData, max_edge: float, max_area: float,
               passes: int) -> pv.PolyData:
    """
    Split triangles for at most ``passes`` rounds.

    A triangle is split while an edge is longer than ``max_edge`` or its
    area exceeds ``max_area``. VTK limits the area to 1.0 when it is not
    given, so it is always passed explicitly.
    """
    return mesh.subdivide_adaptive(max_edge_len=max_edge, max_tri_area=max_area,
                                   max_n_passes=passes)


def orient_outward(mesh: pv.PolyData) -> pv.PolyData:
    """Reorder triangle corners so every face normal points away from the origin."""
    tris = mesh.faces.reshape(-1, 4)[:, 1:].copy()
    p0, p1, p2 = (mesh.points[tris[:, i]] for i in range(3))
    normals = np.cross(p1 - p0, p2 - p0)
    centers = (p0 + p1 + p2) / 3.0
    inward = np.einsum("ij,ij->i", normals, centers) < 0
    tris[inward] = tris[inward][:, [0, 2, 1]]
    mesh.faces = np.hstack([np.full((len(tris), 1), 3), tris]).ravel()
    return mesh


def drape(mesh: pv.PolyData, radius: float) -> pv.PolyData:
    """Overwrite each planar vertex with its position on the sphere."""
    geo = from_planar(mesh.points)
    mesh.points = project_many(geo, radius)
    return mesh


def ring_centroid(dense_ring: np.ndarray) -> Tuple[float, float]:
    lng, lat = dense_ring.mean(axis=0)
    return float(lng), float(lat)


def build_polygon_surface(rings: Sequence, surface_offset: float = 0.0,
                          config: Optional[GlobeConfig] = None) -> PolygonSurface:
    """
    Build a polygon surface on the sphere.

    Args:
        rings: Ring 0 is the outer boundary, rings 1..n are holes
        surface_offset: Extra radial distance above the inflated radius
        config: Engine configuration

    Returns:
        PolygonSurface with the draped mesh and the outer-ring centroid
    """
    config = config or GlobeConfig()
    checked = validate_rings(rings)
    dense = [densify_ring(ring, config.ring_divisions) for ring in checked]

    mesh = triangulate(flat_shape(dense))
    rough = mesh.n_cells
    mesh = tessellate(mesh, config.tessellate_max_edge, config.tessellate_max_area,
                      config.tessellate_passes)
    LOGGER.debug("Tessellated polygon: %d -> %d triangles", rough, mesh.n_cells)

    radius = config.radius * config.surface_inflation + surface_offset
    mesh = orient_outward(drape(mesh, radius))
    mesh = mesh.compute_normals(
        cell_normals=False,
        point_normals=True,
        split_vertices=False,
        consistent_normals=False,
        auto_orient_normals=False,
    )

    return PolygonSurface(mesh=mesh, centroid=ring_centroid(dense[0]), outer=dense[0])
