"""
Engine configuration.

Every tunable constant of the engine lives here. The defaults are collected
into a frozen :class:`GlobeConfig` that is built once and passed by
reference to the builders; nothing mutates it afterwards.
"""

from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Any, Mapping, Optional, Tuple, Union

import yaml

from .errors import ConfigError


# ============================================================================
# CONFIGURATION
# ============================================================================

# Sphere parameters
EARTH_RADIUS = 200.0
SPHERE_RESOLUTION = 128
ATMOSPHERE_SCALE = 1.1

# Polygons float slightly above the base sphere to avoid z-fighting
SURFACE_INFLATION = 1.001

# Line sampling
LINE_SAMPLERS = ("great-circle", "linear")
LINE_DENSITY = 8.0          # Great-circle subdivisions per degree
LINE_DIVISIONS = 100        # Fixed subdivisions per segment (linear sampler)

# Polygon surfaces
RING_DIVISIONS = 100        # Linear subdivisions per ring edge
TESSELLATE_MAX_EDGE = 4.0   # Degrees, planar
TESSELLATE_MAX_AREA = 8.0   # Degrees squared, planar
TESSELLATE_PASSES = 8

# Styled line markers
MARKER_STRIDE = 10.0        # Sampled points between markers, per unit of size
POINT_RESOLUTION = 8

# Visualization settings
WINDOW_SIZE = (1600, 1600)
BACKGROUND_COLOR = "black"
SPHERE_COLOR = "#1a1a2e"
GRATICULE_COLOR = "gray"
LINE_WIDTH = 2.0


@dataclass(frozen=True)
class MaterialPreset:
    """Default look for one family of geometry kinds."""

    color: str
    size: float
    opacity: float = 1.0


POINT_MATERIAL = MaterialPreset(color="#ffff00", size=2.0)
LINE_MATERIAL = MaterialPreset(color="#ffffff", size=1.0)
POLYGON_MATERIAL = MaterialPreset(color="#ffffff", size=1.0)


@dataclass(frozen=True)
class GlobeConfig:
    radius: float = EARTH_RADIUS
    surface_inflation: float = SURFACE_INFLATION
    sphere_resolution: int = SPHERE_RESOLUTION
    atmosphere: bool = True
    atmosphere_scale: float = ATMOSPHERE_SCALE
    line_sampler: str = "great-circle"
    line_density: float = LINE_DENSITY
    line_divisions: int = LINE_DIVISIONS
    ring_divisions: int = RING_DIVISIONS
    tessellate_max_edge: float = TESSELLATE_MAX_EDGE
    tessellate_max_area: float = TESSELLATE_MAX_AREA
    tessellate_passes: int = TESSELLATE_PASSES
    marker_stride: float = MARKER_STRIDE
    point_resolution: int = POINT_RESOLUTION
    point_material: MaterialPreset = POINT_MATERIAL
    line_material: MaterialPreset = LINE_MATERIAL
    polygon_material: MaterialPreset = POLYGON_MATERIAL
    sphere_color: str = SPHERE_COLOR
    texture_url: Optional[str] = None
    texture_cache: Optional[str] = None
    window_size: Tuple[int, int] = field(default=WINDOW_SIZE)
    background: str = BACKGROUND_COLOR
    line_width: float = LINE_WIDTH

    def __post_init__(self):
        if self.radius <= 0:
            raise ConfigError("'radius' must be positive")
        if self.surface_inflation < 1.0:
            raise ConfigError("'surface_inflation' must be >= 1.0")
        if self.line_sampler not in LINE_SAMPLERS:
            raise ConfigError(
                f"'line_sampler' must be one of {', '.join(LINE_SAMPLERS)}"
            )
        for name in ("sphere_resolution", "line_divisions", "ring_divisions",
                     "tessellate_passes", "point_resolution"):
            if getattr(self, name) < 1:
                raise ConfigError(f"'{name}' must be >= 1")
        for name in ("line_density", "tessellate_max_edge", "tessellate_max_area"):
            if getattr(self, name) <= 0:
                raise ConfigError(f"'{name}' must be positive")

    def material(self, family: str) -> MaterialPreset:
        """Return the preset for ``"point"``, ``"line"`` or ``"polygon"``."""
        try:
            return getattr(self, f"{family}_material")
        except AttributeError:
            raise ConfigError(f"Unknown material family '{family}'") from None


# ============================================================================
# LOADING
# ============================================================================

def _mapping(value: Any, field_name: str) -> Mapping[str, Any]:
    if not isinstance(value, Mapping):
        raise ConfigError(f"Expected mapping for '{field_name}'")
    return value


def _float(value: Any, field_name: str) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ConfigError(f"Expected float for '{field_name}'")
    return float(value)


def _int(value: Any, field_name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigError(f"Expected integer for '{field_name}'")
    return value


def _bool(value: Any, field_name: str) -> bool:
    if not isinstance(value, bool):
        raise ConfigError(f"Expected bool for '{field_name}'")
    return value


def _str(value: Any, field_name: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ConfigError(f"Expected non-empty string for '{field_name}'")
    return value.strip()


def _material(value: Any, field_name: str, default: MaterialPreset) -> MaterialPreset:
    raw = _mapping(value, field_name)
    return MaterialPreset(
        color=_str(raw.get("color", default.color), f"{field_name}.color"),
        size=_float(raw.get("size", default.size), f"{field_name}.size"),
        opacity=_float(raw.get("opacity", default.opacity), f"{field_name}.opacity"),
    )


def config_from_mapping(raw: Mapping[str, Any]) -> GlobeConfig:
    """Build a :class:`GlobeConfig` from a plain mapping.

    Keys that are absent keep their defaults; unknown keys are rejected.
    """
    raw = _mapping(raw, "config")
    known = {f.name for f in fields(GlobeConfig)}
    unknown = sorted(set(raw) - known)
    if unknown:
        raise ConfigError(f"Unknown config keys: {', '.join(unknown)}")

    base = GlobeConfig()
    values = {}
    for f in fields(GlobeConfig):
        if f.name not in raw:
            continue
        value = raw[f.name]
        default = getattr(base, f.name)
        if isinstance(default, MaterialPreset):
            values[f.name] = _material(value, f.name, default)
        elif isinstance(default, bool):
            values[f.name] = _bool(value, f.name)
        elif isinstance(default, int):
            values[f.name] = _int(value, f.name)
        elif isinstance(default, float):
            values[f.name] = _float(value, f.name)
        elif f.name == "window_size":
            if not isinstance(value, (list, tuple)) or len(value) != 2:
                raise ConfigError("Expected [width, height] for 'window_size'")
            values[f.name] = (_int(value[0], "window_size[0]"),
                              _int(value[1], "window_size[1]"))
        elif value is None:
            values[f.name] = None
        else:
            values[f.name] = _str(value, f.name)
    return replace(base, **values)


def load_config(path: Union[str, Path]) -> GlobeConfig:
    """Load a YAML configuration file.

    Args:
        path: Path to a YAML file with a top-level mapping (an optional
              ``globe:`` section is also accepted)

    Returns:
        Frozen GlobeConfig
    """
    p = Path(path)
    try:
        raw = yaml.safe_load(p.read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:
        raise ConfigError(f"Could not parse {p}: {exc}") from exc
    if raw is None:
        return GlobeConfig()
    raw = _mapping(raw, str(p))
    if "globe" in raw:
        raw = _mapping(raw["globe"], "globe")
    return config_from_mapping(raw)
