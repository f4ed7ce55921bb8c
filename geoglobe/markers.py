"""
Line-style primitives and label anchors shared by the builders.

Styled lines (dashed, dotted, forward arrows) are drawn as small 3D markers
placed every few sampled points. Each marker is built at the origin with its
forward axis along +X and its up axis along +Z, then moved into a frame whose
up axis is the sphere normal at the sample and whose forward axis points at
the next marker along the tangent plane.
"""

from dataclasses import dataclass
from typing import List, Optional, Tuple

import numpy as np
import pyvista as pv

from .projection import project
from .style import LineType, StyleOptions


@dataclass(frozen=True)
class LabelAnchor:
    text: str
    position: Tuple[float, float, float]
    geographic: Tuple[float, float]


def label_anchor(text: Optional[str], lng: float, lat: float,
                 radius: float) -> Optional[LabelAnchor]:
    """Anchor ``text`` above (lng, lat); returns None when there is no text."""
    if not text:
        return None
    position = tuple(float(c) for c in project(lng, lat, radius))
    return LabelAnchor(text=text, position=position, geographic=(float(lng), float(lat)))


# ============================================================================
# MARKER FRAMES
# ============================================================================

def marker_frame(current: np.ndarray, target: np.ndarray) -> np.ndarray:
    """
    Rotation matrix whose columns are the marker's (forward, side, up) axes.

    Args:
        current: Marker position on the sphere
        target: Point the marker should face

    Returns:
        3x3 rotation matrix mapping local marker axes to world axes
    """
    up = current / np.linalg.norm(current)

    # Project the target onto the tangent plane at current
    offset = target - current
    forward = offset - np.dot(offset, up) * up
    norm = np.linalg.norm(forward)
    if norm < 1e-12:
        # Degenerate direction, pick any tangent
        helper = np.array([0.0, 1.0, 0.0]) if abs(up[1]) < 0.9 else np.array([1.0, 0.0, 0.0])
        forward = np.cross(helper, up)
        norm = np.linalg.norm(forward)
    forward = forward / norm
    side = np.cross(up, forward)

    return np.column_stack([forward, side, up])


def _place(marker: pv.PolyData, rotation: np.ndarray, center: np.ndarray) -> pv.PolyData:
    matrix = np.eye(4)
    matrix[:3, :3] = rotation
    matrix[:3, 3] = center
    return marker.transform(matrix, inplace=False)


def _marker(line_type: LineType, size: float, depth: float) -> pv.PolyData:
    if line_type is LineType.DASHED:
        return pv.Cube(center=(0.0, 0.0, 0.0), x_length=size * 4,
                       y_length=size, z_length=depth)
    if line_type is LineType.DOTTED:
        return pv.Cylinder(center=(0.0, 0.0, 0.0), direction=(0.0, 0.0, 1.0),
                           radius=size, height=depth, resolution=12)
    # Flat three-sided cone, tip along +X
    return pv.Cone(center=(0.0, 0.0, 0.0), direction=(1.0, 0.0, 0.0),
                   height=size * 3, radius=size * 1.5, resolution=3)


def marker_positions(n_points: int, gap: int) -> List[Tuple[int, int]]:
    """(index, facing index) pairs for markers placed every ``gap`` samples."""
    pairs = []
    for idx in range(0, n_points, gap):
        nxt = min(idx + gap, n_points - 1)
        if nxt == idx:
            # Last sample faces away from the previous one
            pairs.append((idx, idx - 1))
        else:
            pairs.append((idx, nxt))
    return pairs


def make_markers(points_3d: np.ndarray, style: StyleOptions,
                 stride: float = 10.0) -> pv.PolyData:
    """Place one oriented marker every ``size * stride`` sampled points."""
    gap = max(1, int(style.size * stride))
    template = _marker(style.line_type, style.size, style.depth)
    markers = []
    for idx, facing in marker_positions(len(points_3d), gap):
        current = points_3d[idx]
        target = points_3d[facing]
        if facing < idx:
            target = 2 * current - target
        rotation = marker_frame(current, target)
        # Sit the marker on the surface rather than half inside it
        center = current + rotation[:, 2] * (style.depth / 2.0)
        markers.append(_place(template, rotation, center))
    if len(markers) == 1:
        return markers[0]
    return markers[0].append_polydata(*markers[1:])


def make_line_geometry(points_3d, style: StyleOptions,
                       stride: float = 10.0) -> pv.PolyData:
    """
    Turn projected line samples into a drawable primitive.

    Args:
        points_3d: (N, 3) array of points on the sphere, N >= 2
        style: Resolved style; ``line_type`` picks the primitive
        stride: Samples between markers per unit of ``size``

    Returns:
        A single polyline for plain lines, merged markers otherwise
    """
    points_3d = np.asarray(points_3d, dtype=float)
    if style.line_type is LineType.PLAIN:
        # One polyline cell through every sample
        n = len(points_3d)
        return pv.PolyData(points_3d, lines=np.hstack([[n], np.arange(n)]))
    return make_markers(points_3d, style, stride)
