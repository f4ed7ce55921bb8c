"""
Typed model of GeoJSON input.

Documents are resolved once, at the public API boundary, into the tagged
types below. Coordinates are copied into nested tuples on the way in, so the
caller's data is never aliased or mutated by the engine.
"""

import enum
from dataclasses import dataclass, field
from typing import Any, Mapping, Optional, Tuple, Union

from .errors import MalformedGeometry, UnsupportedGeometryKind, UnsupportedTopLevelKind


class GeometryKind(str, enum.Enum):
    POINT = "Point"
    MULTI_POINT = "MultiPoint"
    LINE_STRING = "LineString"
    MULTI_LINE_STRING = "MultiLineString"
    POLYGON = "Polygon"
    MULTI_POLYGON = "MultiPolygon"

    @property
    def family(self) -> str:
        """Material family used for style defaults."""
        if self in (GeometryKind.POINT, GeometryKind.MULTI_POINT):
            return "point"
        if self in (GeometryKind.LINE_STRING, GeometryKind.MULTI_LINE_STRING):
            return "line"
        return "polygon"

    @property
    def nesting(self) -> int:
        """Depth of coordinate nesting above a single position."""
        return _NESTING[self]

    @classmethod
    def parse(cls, value) -> "GeometryKind":
        try:
            return cls(value)
        except ValueError:
            raise UnsupportedGeometryKind(value) from None


_NESTING = {
    GeometryKind.POINT: 0,
    GeometryKind.MULTI_POINT: 1,
    GeometryKind.LINE_STRING: 1,
    GeometryKind.MULTI_LINE_STRING: 2,
    GeometryKind.POLYGON: 2,
    GeometryKind.MULTI_POLYGON: 3,
}


def freeze_coordinates(coords, nesting: int):
    """
    Deep-copy coordinates into nested tuples of floats.

    Args:
        coords: Nested sequences as found in a GeoJSON ``coordinates`` member
        nesting: Levels of nesting above a single position

    Returns:
        Nested tuples; positions are (lng, lat) pairs

    Raises:
        MalformedGeometry: if the nesting or the positions are invalid
    """
    if isinstance(coords, (str, bytes, Mapping)) or not hasattr(coords, "__iter__"):
        raise MalformedGeometry(f"Expected a coordinate sequence, got {coords!r}")
    if nesting == 0:
        values = list(coords)
        if len(values) < 2:
            raise MalformedGeometry(f"A position needs longitude and latitude, got {values!r}")
        try:
            return float(values[0]), float(values[1])
        except (TypeError, ValueError) as exc:
            raise MalformedGeometry(f"Position is not numeric: {values!r}") from exc
    return tuple(freeze_coordinates(c, nesting - 1) for c in coords)


@dataclass(frozen=True)
class Geometry:
    kind: GeometryKind
    coordinates: Any

    @classmethod
    def from_coordinates(cls, kind: GeometryKind, coords) -> "Geometry":
        return cls(kind, freeze_coordinates(coords, kind.nesting))

    @classmethod
    def from_mapping(cls, node: Mapping[str, Any]) -> "Geometry":
        kind = GeometryKind.parse(node.get("type"))
        if "coordinates" not in node:
            raise MalformedGeometry(f"{kind.value} geometry has no coordinates")
        return cls.from_coordinates(kind, node["coordinates"])


@dataclass(frozen=True)
class Feature:
    """
    A geometry with its property bag.

    ``geometry`` is None when the geometry type is not supported; the raw
    type string is kept in ``geometry_type`` so it can be reported.
    """

    geometry: Optional[Geometry]
    geometry_type: Optional[str]
    properties: Mapping[str, Any] = field(default_factory=dict)

    @classmethod
    def from_mapping(cls, node: Mapping[str, Any]) -> "Feature":
        if node.get("type") != "Feature":
            raise UnsupportedTopLevelKind(node.get("type"), expected="Feature")
        geometry_node = node.get("geometry")
        properties = dict(node.get("properties") or {})
        if not isinstance(geometry_node, Mapping):
            return cls(None, None, properties)
        raw_type = geometry_node.get("type")
        try:
            geometry = Geometry.from_mapping(geometry_node)
        except UnsupportedGeometryKind:
            return cls(None, raw_type, properties)
        return cls(geometry, geometry.kind.value, properties)


@dataclass(frozen=True)
class FeatureCollection:
    features: Tuple[Feature, ...]

    @classmethod
    def from_mapping(cls, node: Mapping[str, Any]) -> "FeatureCollection":
        if node.get("type") != "FeatureCollection":
            raise UnsupportedTopLevelKind(node.get("type"), expected="FeatureCollection")
        return cls(tuple(Feature.from_mapping(f) for f in node.get("features") or ()))


Document = Union[Feature, FeatureCollection]


def parse_document(node: Union[Mapping[str, Any], Document]) -> Document:
    """
    Resolve a GeoJSON mapping into a Feature or FeatureCollection.

    Raises:
        UnsupportedTopLevelKind: for any other top-level type
    """
    if isinstance(node, (Feature, FeatureCollection)):
        return node
    if not isinstance(node, Mapping):
        raise UnsupportedTopLevelKind(type(node).__name__)
    kind = node.get("type")
    if kind == "Feature":
        return Feature.from_mapping(node)
    if kind == "FeatureCollection":
        return FeatureCollection.from_mapping(node)
    raise UnsupportedTopLevelKind(kind)


def coerce_geometry(kind: GeometryKind, value) -> Tuple[Geometry, Mapping[str, Any]]:
    """
    Resolve the input of a typed builder entry point.

    ``value`` may be raw coordinates, a geometry mapping, a Feature mapping,
    or an already parsed :class:`Geometry` / :class:`Feature`.

    Returns:
        (geometry, properties)

    Raises:
        MalformedGeometry: if the input does not hold a ``kind`` geometry
    """
    properties: Mapping[str, Any] = {}
    if isinstance(value, Feature):
        geometry, properties = value.geometry, value.properties
    elif isinstance(value, Geometry):
        geometry = value
    elif isinstance(value, Mapping):
        if value.get("type") == "Feature":
            feature = Feature.from_mapping(value)
            if feature.geometry is None:
                raise MalformedGeometry(
                    f"Expected {kind.value} geometry, got {feature.geometry_type}"
                )
            geometry, properties = feature.geometry, feature.properties
        else:
            geometry = Geometry.from_mapping(value)
    else:
        geometry = Geometry.from_coordinates(kind, value)

    if geometry is None or geometry.kind is not kind:
        got = geometry.kind.value if geometry is not None else None
        raise MalformedGeometry(f"Expected {kind.value} geometry, got {got}")
    return geometry, properties
