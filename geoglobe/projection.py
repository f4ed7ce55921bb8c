"""
Coordinate transformations between geographic and sphere coordinates.

One convention is used everywhere in the package:

    phi   = (90 - lat) * pi / 180      polar angle, 0 at the north pole
    theta = (180 - lng) * pi / 180     azimuth

    x = r * sin(phi) * cos(theta)
    y = r * cos(phi)
    z = r * sin(phi) * sin(theta)

Y is the polar axis, so the poles land on (0, +-r, 0).
"""

import math
from typing import Sequence, Tuple

import numpy as np


# ============================================================================
# SPHERICAL ANGLES
# ============================================================================

def to_spherical_polar(lat: float) -> float:
    """Convert latitude (degrees) to the polar angle phi (radians)."""
    return (90.0 - lat) * math.pi / 180.0


def to_spherical_azimuth(lng: float) -> float:
    """Convert longitude (degrees) to the azimuth theta (radians)."""
    return (180.0 - lng) * math.pi / 180.0


def unproject(theta: float, phi: float) -> Tuple[float, float]:
    """
    Recover (lng, lat) from spherical angles.

    Exact algebraic inverse of :func:`to_spherical_azimuth` and
    :func:`to_spherical_polar`; no wrapping is applied.

    Args:
        theta: Azimuth in radians
        phi: Polar angle in radians

    Returns:
        (longitude, latitude) in degrees
    """
    return 180.0 - math.degrees(theta), 90.0 - math.degrees(phi)


def wrap_longitude(lng):
    """Fold a longitude (scalar or array) into [-180, 180)."""
    return (lng + 180.0) % 360.0 - 180.0


# ============================================================================
# GEOGRAPHIC <-> CARTESIAN
# ============================================================================

def project(lng: float, lat: float, radius: float = 1.0) -> np.ndarray:
    """
    Convert geographic coordinates to a 3D point on the sphere.

    Args:
        lng: Longitude in degrees
        lat: Latitude in degrees
        radius: Sphere radius

    Returns:
        3D point (x, y, z)
    """
    phi = to_spherical_polar(lat)
    theta = to_spherical_azimuth(lng)

    x = radius * math.sin(phi) * math.cos(theta)
    y = radius * math.cos(phi)
    z = radius * math.sin(phi) * math.sin(theta)

    return np.array([x, y, z])


def project_many(geo_coords, radius: float = 1.0) -> np.ndarray:
    """
    Convert geographic coordinates to 3D points (vectorized).

    Args:
        geo_coords: Array-like of shape (N, 2) with [lng, lat] in degrees
        radius: Sphere radius

    Returns:
        NumPy array of shape (N, 3)
    """
    geo_coords = np.asarray(geo_coords, dtype=float).reshape(-1, 2)
    phi = np.radians(90.0 - geo_coords[:, 1])
    theta = np.radians(180.0 - geo_coords[:, 0])

    sin_phi = np.sin(phi)
    x = radius * sin_phi * np.cos(theta)
    y = radius * np.cos(phi)
    z = radius * sin_phi * np.sin(theta)

    return np.column_stack([x, y, z])


def cartesian_to_spherical(point: Sequence[float]) -> Tuple[float, float]:
    """Return (theta, phi) of the direction of ``point``."""
    x, y, z = (float(c) for c in point)
    r = math.sqrt(x * x + y * y + z * z)
    if r == 0.0:
        raise ValueError("Cannot take the direction of the zero vector")
    phi = math.acos(max(-1.0, min(1.0, y / r)))
    theta = math.atan2(z, x)
    return theta, phi


def cartesian_to_geographic(point: Sequence[float]) -> Tuple[float, float]:
    """
    Recover (lng, lat) from a 3D direction.

    The longitude is wrapped into [-180, 180). At the poles the longitude
    is arbitrary.
    """
    lng, lat = unproject(*cartesian_to_spherical(point))
    return wrap_longitude(lng), lat


def cartesian_to_geographic_many(points) -> np.ndarray:
    """Vectorized :func:`cartesian_to_geographic`; returns an (N, 2) array."""
    points = np.asarray(points, dtype=float).reshape(-1, 3)
    r = np.linalg.norm(points, axis=1)
    phi = np.arccos(np.clip(points[:, 1] / r, -1.0, 1.0))
    theta = np.arctan2(points[:, 2], points[:, 0])
    lng = wrap_longitude(180.0 - np.degrees(theta))
    lat = 90.0 - np.degrees(phi)
    return np.column_stack([lng, lat])


# ============================================================================
# FLAT POLYGON PLANE
# ============================================================================

# Polygons are triangulated in a flat plane before being draped on the
# sphere. These two functions are the only place the plane's axis order is
# defined: X carries longitude, Y carries latitude.

def to_planar(geo_coords) -> np.ndarray:
    """Map (N, 2) [lng, lat] coordinates to (N, 2) planar [x, y]."""
    return np.asarray(geo_coords, dtype=float).reshape(-1, 2).copy()


def from_planar(planar) -> np.ndarray:
    """Map (N, 2+) planar points back to (N, 2) [lng, lat]."""
    planar = np.asarray(planar, dtype=float)
    return planar[:, :2].copy()


# ============================================================================
# DISTANCES
# ============================================================================

def haversine_distance(p1: Sequence[float], p2: Sequence[float],
                       radius: float = 6371e3) -> float:
    """
    Great-circle distance between two (lng, lat) points.

    Args:
        p1: First point in decimal degrees
        p2: Second point in decimal degrees
        radius: Sphere radius (default is the Earth's mean radius in m)

    Returns:
        Distance along the sphere surface, in the units of ``radius``
    """
    lat1 = math.radians(p1[1])
    lat2 = math.radians(p2[1])
    d_lat = lat2 - lat1
    d_lng = math.radians(p2[0] - p1[0])

    a = (math.sin(d_lat / 2) ** 2
         + math.cos(lat1) * math.cos(lat2) * math.sin(d_lng / 2) ** 2)
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))

    return radius * c
