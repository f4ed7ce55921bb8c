"""
Densification of polylines and rings in longitude/latitude space.

Two line samplers are provided. ``great_circle_path`` interpolates through
3D rotations so the sampled line follows the sphere and never wraps the
wrong way around the antimeridian. ``linear_path`` is the older planar
sampler; it interpolates longitude/latitude directly and relies on the
antimeridian correction below.
"""

import math
from typing import Sequence, Tuple

import numpy as np

from .errors import MalformedGeometry
from .projection import cartesian_to_geographic_many, project, wrap_longitude


IDENTITY = np.array([1.0, 0.0, 0.0, 0.0])


def as_points(points, minimum: int, what: str) -> np.ndarray:
    """
    Validate a coordinate sequence and return it as an (N, 2) float array.

    Extra ordinates (altitude) are dropped.

    Raises:
        MalformedGeometry: if the input is not a sequence of numeric pairs
                           or holds fewer than ``minimum`` points
    """
    try:
        arr = np.asarray(points, dtype=float)
    except (TypeError, ValueError) as exc:
        raise MalformedGeometry(f"Coordinates of {what} must be numeric pairs") from exc
    if arr.ndim != 2 or arr.shape[1] < 2:
        if arr.size == 0 and minimum > 0:
            raise MalformedGeometry(f"Need at least {minimum} points for {what}")
        raise MalformedGeometry(f"Coordinates of {what} must be numeric pairs")
    if len(arr) < minimum:
        raise MalformedGeometry(f"Need at least {minimum} points for {what}")
    return arr[:, :2]


# ============================================================================
# QUATERNIONS
# ============================================================================

def quaternion_between(u: np.ndarray, v: np.ndarray) -> np.ndarray:
    """
    Shortest-arc rotation taking direction ``u`` onto direction ``v``.

    Quaternions are stored as [w, x, y, z]. Antipodal inputs have no unique
    shortest arc; any axis perpendicular to ``u`` is used.
    """
    u = np.asarray(u, dtype=float)
    v = np.asarray(v, dtype=float)
    u = u / np.linalg.norm(u)
    v = v / np.linalg.norm(v)
    d = float(np.dot(u, v))

    if d < -1.0 + 1e-12:
        axis = np.cross(u, [1.0, 0.0, 0.0])
        if np.linalg.norm(axis) < 1e-6:
            axis = np.cross(u, [0.0, 1.0, 0.0])
        axis = axis / np.linalg.norm(axis)
        return np.concatenate([[0.0], axis])

    q = np.concatenate([[1.0 + d], np.cross(u, v)])
    return q / np.linalg.norm(q)


def slerp(q0: np.ndarray, q1: np.ndarray, ts) -> np.ndarray:
    """
    Spherical linear interpolation between two unit quaternions.

    Args:
        q0: Start rotation
        q1: End rotation
        ts: Interpolation parameters in [0, 1]

    Returns:
        NumPy array of shape (len(ts), 4)
    """
    ts = np.asarray(ts, dtype=float).reshape(-1, 1)
    q0 = np.asarray(q0, dtype=float)
    q1 = np.asarray(q1, dtype=float)
    dot = float(np.dot(q0, q1))

    # Take the short way round
    if dot < 0.0:
        q1 = -q1
        dot = -dot

    if dot > 0.9995:
        out = q0 + ts * (q1 - q0)
        return out / np.linalg.norm(out, axis=1, keepdims=True)

    omega = math.acos(min(1.0, dot))
    sin_omega = math.sin(omega)
    return (np.sin((1.0 - ts) * omega) / sin_omega) * q0 \
        + (np.sin(ts * omega) / sin_omega) * q1


def rotate(quaternions: np.ndarray, vector: np.ndarray) -> np.ndarray:
    """Rotate one vector by each of an (N, 4) stack of quaternions."""
    quaternions = np.atleast_2d(quaternions)
    w = quaternions[:, :1]
    u = quaternions[:, 1:]
    t = 2.0 * np.cross(u, vector)
    return vector + w * t + np.cross(u, t)


# ============================================================================
# GREAT-CIRCLE SAMPLER
# ============================================================================

def segment_divisions(a: Sequence[float], b: Sequence[float],
                      density: float) -> int:
    """Number of subdivisions for a segment, from its planar length in degrees."""
    d = math.hypot(b[0] - a[0], b[1] - a[1])
    return max(1, math.ceil(d * density))


def great_circle_path(points, density: float = 8.0,
                      include_end: bool = False) -> np.ndarray:
    """
    Sample the great-circle arcs between consecutive vertices of a polyline.

    Each segment A->B is split into ``ceil(d * density)`` steps where ``d``
    is the planar distance in degrees. A is emitted, B only starts the next
    segment, so the output holds ``sum(divs)`` points unless
    ``include_end`` appends the final vertex.

    Args:
        points: Sequence of [lng, lat] vertices (at least 2)
        density: Subdivisions per degree
        include_end: Append the last input vertex

    Returns:
        NumPy array of shape (N, 2) with [lng, lat] in degrees
    """
    pts = as_points(points, 2, "a line")
    samples = []

    for a, b in zip(pts[:-1], pts[1:]):
        divs = segment_divisions(a, b, density)
        pa = project(a[0], a[1], 1.0)
        pb = project(b[0], b[1], 1.0)

        # Reference vector is pa itself, so the first rotation is identity
        target = quaternion_between(pa, pb)
        ts = np.arange(divs) / divs
        rotated = rotate(slerp(IDENTITY, target, ts), pa)
        samples.append(cartesian_to_geographic_many(rotated))

    if include_end:
        samples.append(pts[-1:].copy())
    return np.vstack(samples)


# ============================================================================
# LINEAR SAMPLER AND ANTIMERIDIAN CORRECTION
# ============================================================================

def crosses_antimeridian(lng0: float, lng1: float) -> bool:
    """True when a segment's endpoints straddle the +-180 line."""
    return (math.copysign(1.0, lng0) != math.copysign(1.0, lng1)
            and abs(lng0) > 90 and abs(lng1) > 90)


def correct_antimeridian(a: Sequence[float], b: Sequence[float]
                         ) -> Tuple[Tuple[float, float], Tuple[float, float], float]:
    """
    Shift a crossing segment into a space where it does not wrap.

    The endpoint with the larger longitude is placed first and moved to
    longitude 0; the other one is offset by the same correction.

    Returns:
        (first, second, corr) where shifted longitudes minus ``corr`` give
        back the original longitudes modulo 360
    """
    first, second = (a, b) if a[0] >= b[0] else (b, a)
    corr = abs(180.0 - first[0]) + 180.0
    return (0.0, float(first[1])), (float(second[0]) + corr, float(second[1])), corr


def linear_path(points, divisions: int = 100,
                include_end: bool = False) -> np.ndarray:
    """
    Sample a polyline by linear interpolation in longitude/latitude.

    Every consecutive pair is tested for an antimeridian crossing on its
    own and corrected if needed.

    Args:
        points: Sequence of [lng, lat] vertices (at least 2)
        divisions: Fixed number of steps per segment
        include_end: Append the last input vertex

    Returns:
        NumPy array of shape (len(points) - 1) * divisions (+1) x 2
    """
    pts = as_points(points, 2, "a line")
    js = np.arange(divisions) / divisions
    samples = []

    for a, b in zip(pts[:-1], pts[1:]):
        corr = 0.0
        start, stop = a, b
        if crosses_antimeridian(a[0], b[0]):
            first, second, corr = correct_antimeridian(a, b)
            start, stop = (first, second) if a[0] >= b[0] else (second, first)

        lng = start[0] + js * (stop[0] - start[0]) - corr
        lat = start[1] + js * (stop[1] - start[1])
        if corr:
            lng = wrap_longitude(lng)
        samples.append(np.column_stack([lng, lat]))

    if include_end:
        samples.append(pts[-1:].copy())
    return np.vstack(samples)


def densify_ring(ring, divisions: int = 100) -> np.ndarray:
    """
    Subdivide every edge of an implicitly closed ring.

    A ring whose last point repeats the first is treated as already
    closed. The closing edge is always sampled, the closing point is not
    repeated in the output.

    Raises:
        MalformedGeometry: if the ring has fewer than 3 distinct points
    """
    pts = as_points(ring, 3, "a ring in a polygon")
    if np.allclose(pts[0], pts[-1]):
        pts = pts[:-1]
        if len(pts) < 3:
            raise MalformedGeometry("Need at least 3 points for a ring in a polygon")

    starts = pts
    ends = np.roll(pts, -1, axis=0)
    js = (np.arange(divisions) / divisions)[None, :, None]
    dense = starts[:, None, :] + js * (ends - starts)[:, None, :]
    return dense.reshape(-1, 2)


def sample_line(points, sampler: str = "great-circle", density: float = 8.0,
                divisions: int = 100) -> np.ndarray:
    """Sample a line with the named sampler, ending exactly on its last vertex."""
    if sampler == "linear":
        return linear_path(points, divisions, include_end=True)
    return great_circle_path(points, density, include_end=True)
