"""Resolution of caller and feature style options into one canonical record."""

import enum
import numbers
from dataclasses import dataclass
from typing import Any, Mapping, Optional, Tuple

import pyvista as pv

from .config import GlobeConfig
from .geojson import GeometryKind


class LineType(str, enum.Enum):
    PLAIN = "plain"
    DASHED = "dashed"
    DOTTED = "dotted"
    FORWARD_ARROWS = "forward-arrows"

    @classmethod
    def parse(cls, value) -> "LineType":
        if isinstance(value, LineType):
            return value
        key = str(value).strip().lower().replace("_", "-")
        if key in ("arrows", "arrow", "forwardarrows"):
            key = cls.FORWARD_ARROWS.value
        try:
            return cls(key)
        except ValueError:
            names = ", ".join(t.value for t in cls)
            raise ValueError(f"Unknown line type {value!r}; expected one of {names}") from None


@dataclass(frozen=True)
class StyleOptions:
    color: Tuple[float, float, float]
    size: float
    label: Optional[str] = None
    line_type: LineType = LineType.PLAIN
    depth: float = 1.0
    surface_offset: float = 0.0
    opacity: float = 1.0


# Property keys as they appear in feature properties, with accepted aliases
_KEYS = {
    "label": ("label",),
    "color": ("color",),
    "size": ("size",),
    "line_type": ("linetype", "line_type", "lineType"),
    "depth": ("depth",),
    "surface_offset": ("surfaceOffset", "surface_offset"),
    "opacity": ("opacity",),
}


def parse_color(value) -> Tuple[float, float, float]:
    """
    Parse a color into an RGB triple of floats in [0, 1].

    Accepts packed integers (``0xffff00``), hex strings (``"#ff0"``,
    ``"#ffff00"``, ``"0xffff00"``), color names and RGB sequences.
    """
    if isinstance(value, bool):
        raise ValueError(f"Invalid color {value!r}")
    if isinstance(value, numbers.Integral):
        if not 0 <= value <= 0xFFFFFF:
            raise ValueError(f"Packed color out of range: {value!r}")
        value = f"#{int(value):06x}"
    elif isinstance(value, str):
        text = value.strip()
        if text.startswith("#") and len(text) == 4:
            text = "#" + "".join(ch * 2 for ch in text[1:])
        value = text
    return tuple(pv.Color(value).float_rgb)


def _lookup(key: str, *sources: Optional[Mapping[str, Any]]):
    for source in sources:
        if not source:
            continue
        for alias in _KEYS[key]:
            if source.get(alias) is not None:
                return source[alias]
    return None


def resolve_style(kind: GeometryKind,
                  properties: Optional[Mapping[str, Any]] = None,
                  overrides: Optional[Mapping[str, Any]] = None,
                  config: Optional[GlobeConfig] = None) -> StyleOptions:
    """
    Merge explicit options, feature properties and kind defaults.

    Explicit ``overrides`` win over ``properties``, which win over the
    material preset of the geometry's family.

    Args:
        kind: Geometry kind being styled
        properties: Feature property bag
        overrides: Options passed by the caller
        config: Engine configuration holding the presets

    Returns:
        Resolved StyleOptions
    """
    config = config or GlobeConfig()
    preset = config.material(kind.family)

    def pick(key, default):
        value = _lookup(key, overrides, properties)
        return default if value is None else value

    label = pick("label", None)
    size = float(pick("size", preset.size))
    if size <= 0:
        raise ValueError(f"Size must be positive, got {size}")

    return StyleOptions(
        color=parse_color(pick("color", preset.color)),
        size=size,
        label=str(label) if label is not None else None,
        line_type=LineType.parse(pick("line_type", LineType.PLAIN)),
        depth=float(pick("depth", 1.0)),
        surface_offset=float(pick("surface_offset", 0.0)),
        opacity=float(pick("opacity", preset.opacity)),
    )
