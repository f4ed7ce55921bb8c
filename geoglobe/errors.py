"""Exceptions raised by the geometry engine."""


class GeoGlobeError(Exception):
    """Base class for every error raised by geoglobe."""


class MalformedGeometry(GeoGlobeError, ValueError):
    """Coordinates do not describe a buildable geometry.

    Raised for a LineString with fewer than 2 points, a polygon ring with
    fewer than 3 points, or coordinates that are not numeric pairs.
    """


class UnsupportedGeometryKind(GeoGlobeError):
    """A feature's geometry type is not one of the six supported kinds."""

    def __init__(self, kind):
        super().__init__(f"{kind} type can not be parsed.")
        self.kind = kind


class UnsupportedTopLevelKind(GeoGlobeError):
    """The document is neither a Feature nor a FeatureCollection."""

    def __init__(self, kind, expected: str = "Feature or FeatureCollection"):
        super().__init__(f"Unexpected type: {kind!r}. Expected {expected}")
        self.kind = kind


class InvalidHandle(GeoGlobeError):
    """A primitive could not be registered or a handle id is unknown."""


class GlobeNotReady(GeoGlobeError):
    """The globe failed to initialise or its initialisation was cancelled."""


class ConfigError(GeoGlobeError, ValueError):
    """A configuration value is missing or has the wrong type."""
