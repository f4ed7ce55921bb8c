"""Drape geographic vector features over a 3D sphere."""

from .builders import BuiltGeometry, GeometryBuilder
from .config import GlobeConfig, MaterialPreset, load_config
from .dispatch import FeatureDispatcher
from .errors import (
    ConfigError,
    GeoGlobeError,
    GlobeNotReady,
    InvalidHandle,
    MalformedGeometry,
    UnsupportedGeometryKind,
    UnsupportedTopLevelKind,
)
from .geojson import Feature, FeatureCollection, Geometry, GeometryKind, parse_document
from .globe import Globe
from .projection import cartesian_to_geographic, project, project_many, unproject
from .registry import ActiveObjectRegistry, GeometryHandle, NullScene
from .sampling import great_circle_path, linear_path
from .style import LineType, StyleOptions, resolve_style
from .surface import build_polygon_surface

__version__ = "0.1.0"
