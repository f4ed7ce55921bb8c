"""
Public entry point: a globe with its readiness barrier and ``add_*`` API.

Every builder entry point awaits one initialisation future before doing any
work. Callers may start adding features before ``initialize()`` has run;
they simply wait for it.
"""

import asyncio
import functools
import logging
from typing import Any, List, Mapping, Optional, Union

import pyvista as pv

from .builders import BuiltGeometry, GeometryBuilder
from .config import GlobeConfig
from .dispatch import FeatureDispatcher
from .errors import GlobeNotReady
from .geojson import Geometry, GeometryKind, coerce_geometry
from .registry import ActiveObjectRegistry, GeometryHandle
from .scene import create_atmosphere, create_textured_sphere
from .style import resolve_style

LOGGER = logging.getLogger(__name__)

Options = Optional[Mapping[str, Any]]


class Globe:
    """
    A sphere of ``config.radius`` onto which geographic features are draped.

    Args:
        config: Engine configuration (defaults to ``GlobeConfig()``)
        scene: Object with ``attach(handle)``, ``detach(handle)`` and
               ``add_base(sphere, atmosphere)``; a headless scene is used
               when omitted
    """

    def __init__(self, config: Optional[GlobeConfig] = None, scene=None):
        self.config = config or GlobeConfig()
        self.registry = ActiveObjectRegistry(scene)
        self.scene = self.registry.scene
        self.builder = GeometryBuilder(self.config)
        self.dispatcher = FeatureDispatcher(self._add_geometry)
        self.base_mesh: Optional[pv.PolyData] = None
        self.atmosphere_mesh: Optional[pv.PolyData] = None
        self._ready: Optional[asyncio.Future] = None
        self._cancelled = False

    # ------------------------------------------------------------------------
    # Readiness barrier
    # ------------------------------------------------------------------------

    def _barrier(self) -> asyncio.Future:
        if self._ready is None:
            self._ready = asyncio.get_running_loop().create_future()
            if self._cancelled:
                self._ready.cancel()
        return self._ready

    @property
    def is_ready(self) -> bool:
        return (self._ready is not None and self._ready.done()
                and not self._ready.cancelled() and self._ready.exception() is None)

    async def initialize(self) -> "Globe":
        """Build the base sphere, hand it to the scene and open the barrier."""
        barrier = self._barrier()
        if barrier.done():
            await self.ready()
            return self

        try:
            self.base_mesh = create_textured_sphere(self.config.radius,
                                                    self.config.sphere_resolution)
            if self.config.atmosphere:
                self.atmosphere_mesh = create_atmosphere(self.config.radius,
                                                         self.config.atmosphere_scale,
                                                         self.config.sphere_resolution)
            self.scene.add_base(self.base_mesh, self.atmosphere_mesh)
        except Exception as exc:
            LOGGER.error("Globe initialisation failed: %s", exc)
            if not barrier.done():
                barrier.set_exception(exc)
            raise

        if not barrier.done():
            barrier.set_result(True)
        LOGGER.info("Globe ready (radius %.1f)", self.config.radius)
        return self

    def cancel(self) -> None:
        """
        Abort a pending initialisation; waiters raise GlobeNotReady.

        May be called outside an event loop. The barrier is then created
        already cancelled once a loop first asks for it.
        """
        if self._ready is None:
            self._cancelled = True
        elif not self._ready.done():
            self._ready.cancel()

    async def ready(self) -> None:
        """
        Wait until the globe is initialised.

        Raises:
            GlobeNotReady: if initialisation failed or was cancelled
        """
        barrier = self._barrier()
        try:
            await asyncio.shield(barrier)
        except asyncio.CancelledError:
            if barrier.cancelled():
                raise GlobeNotReady("Globe initialisation was cancelled") from None
            raise
        except Exception as exc:
            raise GlobeNotReady("Globe initialisation failed") from exc

    # ------------------------------------------------------------------------
    # Building
    # ------------------------------------------------------------------------

    async def _build(self, geometry: Geometry, style) -> BuiltGeometry:
        if geometry.kind in (GeometryKind.POLYGON, GeometryKind.MULTI_POLYGON):
            # Tessellation is the expensive part; keep it off the event loop
            loop = asyncio.get_running_loop()
            return await loop.run_in_executor(
                None, functools.partial(self.builder.build, geometry, style)
            )
        return self.builder.build(geometry, style)

    async def _add_geometry(self, geometry: Geometry, properties: Options = None,
                            overrides: Options = None) -> GeometryHandle:
        await self.ready()
        style = resolve_style(geometry.kind, properties, overrides, self.config)
        built = await self._build(geometry, style)
        return self.registry.register(built, geometry.kind, style)

    async def _add_kind(self, kind: GeometryKind, value, opts: Options) -> GeometryHandle:
        await self.ready()
        geometry, properties = coerce_geometry(kind, value)
        return await self._add_geometry(geometry, properties, opts)

    async def add_point(self, value, opts: Options = None) -> GeometryHandle:
        """
        Add a single point as a small sphere.

        Args:
            value: ``[lng, lat]``, a Point geometry or a Point Feature
            opts: Style options (``color``, ``size``, ``label``, ...)

        Returns:
            The registered GeometryHandle
        """
        return await self._add_kind(GeometryKind.POINT, value, opts)

    async def add_multi_point(self, value, opts: Options = None) -> GeometryHandle:
        return await self._add_kind(GeometryKind.MULTI_POINT, value, opts)

    async def add_line_string(self, value, opts: Options = None) -> GeometryHandle:
        return await self._add_kind(GeometryKind.LINE_STRING, value, opts)

    async def add_multi_line_string(self, value, opts: Options = None) -> GeometryHandle:
        return await self._add_kind(GeometryKind.MULTI_LINE_STRING, value, opts)

    async def add_polygon(self, value, opts: Options = None) -> GeometryHandle:
        """
        Add a polygon surface; ring 0 is the outer boundary, others are holes.

        Args:
            value: List of rings, a Polygon geometry or a Polygon Feature
            opts: Style options

        Returns:
            The registered GeometryHandle
        """
        return await self._add_kind(GeometryKind.POLYGON, value, opts)

    async def add_multi_polygon(self, value, opts: Options = None) -> GeometryHandle:
        return await self._add_kind(GeometryKind.MULTI_POLYGON, value, opts)

    async def add_feature(self, feature, opts: Options = None) -> Optional[GeometryHandle]:
        await self.ready()
        return await self.dispatcher.add_feature(feature, opts)

    async def add_feature_collection(self, collection, opts: Options = None) -> List[GeometryHandle]:
        await self.ready()
        return await self.dispatcher.add_feature_collection(collection, opts)

    async def add_geojson(self, document, opts: Options = None
                          ) -> Union[GeometryHandle, List[GeometryHandle], None]:
        """Add a GeoJSON Feature or FeatureCollection."""
        await self.ready()
        return await self.dispatcher.add_geojson(document, opts)

    def remove(self, handle: Union[GeometryHandle, str]) -> GeometryHandle:
        return self.registry.remove(handle)
