"""
Builders turning each geometry kind into a tree of pyvista datasets.

Every builder returns a :class:`BuiltGeometry` whose ``primitive`` is a
``pv.MultiBlock`` container; the leaves are ``pv.PolyData`` meshes. Builders
are pure: they never touch a plotter.
"""

import logging
from dataclasses import dataclass
from typing import Callable, Dict, Optional, Tuple

import numpy as np
import pyvista as pv

from .config import GlobeConfig
from .errors import MalformedGeometry
from .geojson import Geometry, GeometryKind
from .markers import LabelAnchor, label_anchor, make_line_geometry
from .projection import project, project_many
from .sampling import as_points, sample_line
from .style import StyleOptions
from .surface import build_polygon_surface, validate_rings

LOGGER = logging.getLogger(__name__)


@dataclass
class BuiltGeometry:
    primitive: pv.MultiBlock
    anchor: Tuple[float, float]
    label: Optional[LabelAnchor] = None


class GeometryBuilder:
    """Builds surface-conforming geometry for one globe configuration."""

    def __init__(self, config: Optional[GlobeConfig] = None):
        self.config = config or GlobeConfig()
        self._builders: Dict[GeometryKind, Callable] = {
            GeometryKind.POINT: self.point,
            GeometryKind.MULTI_POINT: self.multi_point,
            GeometryKind.LINE_STRING: self.line_string,
            GeometryKind.MULTI_LINE_STRING: self.multi_line_string,
            GeometryKind.POLYGON: self.polygon,
            GeometryKind.MULTI_POLYGON: self.multi_polygon,
        }

    def build(self, geometry: Geometry, style: StyleOptions) -> BuiltGeometry:
        return self._builders[geometry.kind](geometry.coordinates, style)

    def surface_radius(self, style: StyleOptions) -> float:
        return self.config.radius + style.surface_offset

    def _finish(self, container: pv.MultiBlock, lng: float, lat: float,
                style: StyleOptions, radius: float) -> BuiltGeometry:
        return BuiltGeometry(
            primitive=container,
            anchor=(float(lng), float(lat)),
            label=label_anchor(style.label, lng, lat, radius),
        )

    # ------------------------------------------------------------------------
    # Points
    # ------------------------------------------------------------------------

    def _point_mesh(self, lng: float, lat: float, style: StyleOptions) -> pv.PolyData:
        center = project(lng, lat, self.surface_radius(style))
        return pv.Sphere(
            radius=style.size,
            center=center,
            theta_resolution=self.config.point_resolution,
            phi_resolution=self.config.point_resolution,
        )

    def point(self, coords, style: StyleOptions) -> BuiltGeometry:
        lng, lat = as_points([coords], 1, "a point")[0]
        container = pv.MultiBlock()
        container.append(self._point_mesh(lng, lat, style), "point")
        return self._finish(container, lng, lat, style, self.surface_radius(style))

    def multi_point(self, coords, style: StyleOptions) -> BuiltGeometry:
        pts = as_points(coords, 1, "a multi point")
        points = pv.MultiBlock()
        for i, (lng, lat) in enumerate(pts):
            points.append(self._point_mesh(lng, lat, style), f"point_{i}")

        container = pv.MultiBlock()
        container.append(points, "points")
        lng, lat = pts.mean(axis=0)
        return self._finish(container, lng, lat, style, self.surface_radius(style))

    # ------------------------------------------------------------------------
    # Lines
    # ------------------------------------------------------------------------

    def _line(self, coords, style: StyleOptions) -> Tuple[pv.PolyData, np.ndarray]:
        samples = sample_line(
            coords,
            sampler=self.config.line_sampler,
            density=self.config.line_density,
            divisions=self.config.line_divisions,
        )
        points_3d = project_many(samples, self.surface_radius(style))
        line = make_line_geometry(points_3d, style, self.config.marker_stride)
        return line, samples

    def line_string(self, coords, style: StyleOptions) -> BuiltGeometry:
        line, samples = self._line(coords, style)
        container = pv.MultiBlock()
        container.append(line, "line")
        lng, lat = samples[len(samples) // 2]
        return self._finish(container, lng, lat, style, self.surface_radius(style))

    def multi_line_string(self, coords, style: StyleOptions) -> BuiltGeometry:
        if len(coords) == 0:
            raise MalformedGeometry("A multi line string needs at least one line")
        for member in coords:
            as_points(member, 2, "a line")

        lines = pv.MultiBlock()
        middle = None
        for i, member in enumerate(coords):
            line, samples = self._line(member, style)
            lines.append(line, f"line_{i}")
            if middle is None:
                middle = samples[len(samples) // 2]

        container = pv.MultiBlock()
        container.append(lines, "lines")
        return self._finish(container, middle[0], middle[1], style,
                            self.surface_radius(style))

    # ------------------------------------------------------------------------
    # Polygons
    # ------------------------------------------------------------------------

    def polygon_radius(self, style: StyleOptions) -> float:
        return self.config.radius * self.config.surface_inflation + style.surface_offset

    def polygon(self, rings, style: StyleOptions) -> BuiltGeometry:
        surface = build_polygon_surface(rings, style.surface_offset, self.config)
        polygon = pv.MultiBlock()
        polygon.append(surface.mesh, "surface")

        container = pv.MultiBlock()
        container.append(polygon, "polygon")
        lng, lat = surface.centroid
        return self._finish(container, lng, lat, style, self.polygon_radius(style))

    def multi_polygon(self, polygons, style: StyleOptions) -> BuiltGeometry:
        if len(polygons) == 0:
            raise MalformedGeometry("A multi polygon needs at least one polygon")
        for rings in polygons:
            validate_rings(rings)

        blocks = pv.MultiBlock()
        outers = []
        for i, rings in enumerate(polygons):
            surface = build_polygon_surface(rings, style.surface_offset, self.config)
            polygon = pv.MultiBlock()
            polygon.append(surface.mesh, "surface")
            blocks.append(polygon, f"polygon_{i}")
            outers.append(surface.outer)
            LOGGER.debug("Built polygon %d of %d", i + 1, len(polygons))

        container = pv.MultiBlock()
        container.append(blocks, "polygons")
        lng, lat = np.vstack(outers).mean(axis=0)
        return self._finish(container, lng, lat, style, self.polygon_radius(style))
