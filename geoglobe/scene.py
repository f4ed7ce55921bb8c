"""
PyVista scene adapter.

The engine only produces datasets; this module is where they meet a
``pv.Plotter``. It also builds the base globe (a UV-mapped sphere and an
atmosphere shell) and fetches the surface texture.
"""

import logging
import os
from pathlib import Path
from typing import Dict, List, Optional

import numpy as np
import pyvista as pv
import requests

from .config import GlobeConfig
from .projection import project_many
from .registry import GeometryHandle, iter_leaves

LOGGER = logging.getLogger(__name__)

DOWNLOAD_CHUNK = 8192
DOWNLOAD_TIMEOUT = 60


# ============================================================================
# BASE GLOBE
# ============================================================================

def create_textured_sphere(radius: float = 1.0, resolution: int = 128) -> pv.PolyData:
    """
    Create a sphere with texture coordinates matching an equirectangular map.

    Vertices come from the engine's projection, so a texture's longitude
    and latitude line up with projected features.

    Args:
        radius: Sphere radius
        resolution: Number of samples along longitude and latitude

    Returns:
        PyVista sphere surface with active texture coordinates
    """
    lng = np.linspace(-180.0, 180.0, resolution)
    lat = np.linspace(90.0, -90.0, resolution)
    lng_grid, lat_grid = np.meshgrid(lng, lat)

    points = project_many(np.column_stack([lng_grid.ravel(), lat_grid.ravel()]), radius)

    grid = pv.StructuredGrid()
    grid.points = points
    grid.dimensions = [resolution, resolution, 1]

    u = np.linspace(0, 1, resolution)
    v = np.linspace(1, 0, resolution)
    u_grid, v_grid = np.meshgrid(u, v)
    grid.active_texture_coordinates = np.column_stack((u_grid.ravel(), v_grid.ravel()))

    return grid.extract_surface()


def create_atmosphere(radius: float, scale: float, resolution: int) -> pv.PolyData:
    """Create the translucent shell drawn around the globe."""
    return pv.Sphere(
        radius=radius * scale,
        direction=(0.0, 1.0, 0.0),
        theta_resolution=resolution,
        phi_resolution=resolution,
    )


def fetch_texture(url: str, save_path) -> Optional[Path]:
    """
    Download a texture image unless a cached copy exists.

    Args:
        url: Image URL
        save_path: Cache file location

    Returns:
        Path to the image, or None if the download failed
    """
    save_path = Path(save_path)
    if save_path.exists():
        LOGGER.info("Using cached texture: %s", save_path)
        return save_path

    LOGGER.info("Downloading texture from %s", url)
    try:
        response = requests.get(url, stream=True, timeout=DOWNLOAD_TIMEOUT)
        response.raise_for_status()
        save_path.parent.mkdir(parents=True, exist_ok=True)
        with open(save_path, "wb") as f:
            for chunk in response.iter_content(chunk_size=DOWNLOAD_CHUNK):
                f.write(chunk)
    except requests.RequestException as exc:
        LOGGER.error("Error downloading texture: %s", exc)
        return None

    LOGGER.info("Texture downloaded to %s", save_path)
    return save_path


def texture_cache_path(config: GlobeConfig) -> Path:
    if config.texture_cache:
        return Path(config.texture_cache)
    name = os.path.basename(config.texture_url.split("?", 1)[0]) or "texture.jpg"
    return Path.home() / ".cache" / "geoglobe" / name


# ============================================================================
# GRATICULE
# ============================================================================

def create_latitude_line(lat: float, radius: float, num_points: int = 200) -> pv.PolyData:
    lng = np.linspace(-180.0, 180.0, num_points)
    coords = np.column_stack([lng, np.full(num_points, lat)])
    return pv.lines_from_points(project_many(coords, radius))


def create_longitude_line(lng: float, radius: float, num_points: int = 100) -> pv.PolyData:
    lat = np.linspace(90.0, -90.0, num_points)
    coords = np.column_stack([np.full(num_points, lng), lat])
    return pv.lines_from_points(project_many(coords, radius))


def create_graticule(radius: float, step: int = 30):
    """
    Create parallels and meridians every ``step`` degrees.

    Returns:
        Tuple of (parallels list, meridians list, equator)
    """
    parallels = []
    equator = None
    for lat in range(-90 + step, 90, step):
        line = create_latitude_line(lat, radius)
        if lat == 0:
            equator = line
        else:
            parallels.append(line)

    meridians = [create_longitude_line(lng, radius) for lng in range(-180, 180, step)]
    return parallels, meridians, equator


# ============================================================================
# SCENE
# ============================================================================

def setup_plotter(config: GlobeConfig, off_screen: bool = False) -> pv.Plotter:
    plotter = pv.Plotter(window_size=list(config.window_size), off_screen=off_screen)
    plotter.set_background(config.background)
    return plotter


class PyVistaScene:
    """Hands registered geometry to a ``pv.Plotter``."""

    def __init__(self, plotter: Optional[pv.Plotter] = None,
                 config: Optional[GlobeConfig] = None):
        self.config = config or GlobeConfig()
        self.plotter = plotter if plotter is not None else setup_plotter(self.config)
        self._actors: Dict[str, List] = {}

    def add_base(self, sphere: pv.PolyData, atmosphere: Optional[pv.PolyData] = None) -> None:
        texture = None
        if self.config.texture_url:
            path = fetch_texture(self.config.texture_url, texture_cache_path(self.config))
            if path is not None:
                texture = pv.read_texture(str(path))

        if texture is not None:
            self.plotter.add_mesh(sphere, texture=texture, smooth_shading=True, name="sphere")
        else:
            self.plotter.add_mesh(sphere, color=self.config.sphere_color,
                                  smooth_shading=True, name="sphere")

        if atmosphere is not None:
            self.plotter.add_mesh(atmosphere, color="white", opacity=0.08,
                                  smooth_shading=True, name="atmosphere")

    def add_graticule(self, step: int = 30) -> None:
        radius = self.config.radius * self.config.surface_inflation
        parallels, meridians, equator = create_graticule(radius, step)

        if equator is not None:
            self.plotter.add_mesh(equator, color="red", opacity=0.7, line_width=3,
                                  render_lines_as_tubes=True, name="equator")
        for i, parallel in enumerate(parallels):
            self.plotter.add_mesh(parallel, color="yellow",
                                  opacity=0.7, line_width=2,
                                  render_lines_as_tubes=True, name=f"parallel_{i}")
        for i, meridian in enumerate(meridians):
            self.plotter.add_mesh(meridian, color="gray", opacity=0.7, line_width=2,
                                  render_lines_as_tubes=True, name=f"meridian_{i}")

    def attach(self, handle: GeometryHandle) -> None:
        actors = []
        for i, leaf in enumerate(iter_leaves(handle.primitive)):
            actors.append(self.plotter.add_mesh(
                leaf,
                color=handle.style.color,
                opacity=handle.style.opacity,
                line_width=self.config.line_width,
                render_lines_as_tubes=True,
                smooth_shading=True,
                name=f"{handle.id}_{i}",
            ))
        if handle.label is not None:
            actors.append(self.plotter.add_point_labels(
                [handle.label.position],
                [handle.label.text],
                text_color="white",
                shape_opacity=0.0,
                show_points=False,
                always_visible=True,
                name=f"{handle.id}_label",
            ))
        self._actors[handle.id] = actors

    def detach(self, handle: GeometryHandle) -> None:
        for actor in self._actors.pop(handle.id, []):
            self.plotter.remove_actor(actor)

    def show(self, title: str = "geoglobe") -> None:
        # Looking at the prime meridian, north up
        distance = self.config.radius * 4.0
        self.plotter.camera_position = [
            (-distance, 0.0, 0.0),
            (0.0, 0.0, 0.0),
            (0.0, 1.0, 0.0),
        ]
        self.plotter.enable_terrain_style(mouse_wheel_zooms=True)
        self.plotter.show(title=title)
