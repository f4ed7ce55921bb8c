"""Dispatch of GeoJSON documents to the per-kind builders."""

import logging
from typing import Any, Awaitable, Callable, List, Mapping, Optional, Union

from .errors import UnsupportedGeometryKind, UnsupportedTopLevelKind
from .geojson import Feature, FeatureCollection, Geometry, parse_document

LOGGER = logging.getLogger(__name__)

# build(geometry, properties, overrides) -> handle
BuildFn = Callable[[Geometry, Mapping[str, Any], Optional[Mapping[str, Any]]], Awaitable[Any]]


class FeatureDispatcher:
    """
    Routes Features and FeatureCollections to a build coroutine.

    Unsupported geometry kinds are logged and skipped. Malformed geometry is
    a caller error and propagates, aborting a collection.
    """

    def __init__(self, build: BuildFn):
        self._build = build

    async def add_geojson(self, document, overrides: Optional[Mapping[str, Any]] = None):
        """
        Add a Feature or FeatureCollection.

        Returns:
            A handle (or None) for a Feature, a list of handles for a
            FeatureCollection

        Raises:
            UnsupportedTopLevelKind: for any other top-level type
        """
        parsed = parse_document(document)
        if isinstance(parsed, FeatureCollection):
            return await self.add_feature_collection(parsed, overrides)
        return await self.add_feature(parsed, overrides)

    async def add_feature(self, feature: Union[Feature, Mapping[str, Any]],
                          overrides: Optional[Mapping[str, Any]] = None):
        if not isinstance(feature, Feature):
            feature = Feature.from_mapping(feature)
        if feature.geometry is None:
            LOGGER.warning("%s type can not be parsed.", feature.geometry_type)
            return None
        try:
            return await self._build(feature.geometry, feature.properties, overrides)
        except UnsupportedGeometryKind as exc:
            LOGGER.warning("%s", exc)
            return None

    async def add_feature_collection(self, collection: Union[FeatureCollection, Mapping[str, Any]],
                                     overrides: Optional[Mapping[str, Any]] = None) -> List[Any]:
        if not isinstance(collection, FeatureCollection):
            if not isinstance(collection, Mapping):
                raise UnsupportedTopLevelKind(type(collection).__name__,
                                              expected="FeatureCollection")
            collection = FeatureCollection.from_mapping(collection)

        handles = []
        for feature in collection.features:
            handle = await self.add_feature(feature, overrides)
            if handle is not None:
                handles.append(handle)
        LOGGER.info("Added %d of %d features", len(handles), len(collection.features))
        return handles
