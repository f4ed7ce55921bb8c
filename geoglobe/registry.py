"""
Registry of every geometry handed to the scene.

The registry owns the handles, forwards each new one to the scene exactly
once, and keeps the flat list of leaf meshes the scene uses for picking.
"""

import logging
import uuid
from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional, Union

import pyvista as pv

from .builders import BuiltGeometry
from .errors import InvalidHandle
from .geojson import GeometryKind
from .markers import LabelAnchor
from .style import StyleOptions

LOGGER = logging.getLogger(__name__)


@dataclass(eq=False)
class GeometryHandle:
    id: str
    kind: GeometryKind
    primitive: pv.MultiBlock
    style: StyleOptions
    label: Optional[LabelAnchor] = None
    anchor: Optional[tuple] = None
    leaves: List[pv.PolyData] = field(default_factory=list)


def iter_leaves(primitive) -> Iterator[pv.DataSet]:
    """Yield every leaf dataset of a (possibly nested) MultiBlock."""
    if primitive is None:
        return
    if isinstance(primitive, pv.MultiBlock):
        for block in primitive:
            yield from iter_leaves(block)
    else:
        yield primitive


class NullScene:
    """Scene that renders nothing; used when the engine runs headless."""

    def attach(self, handle: GeometryHandle) -> None:
        pass

    def detach(self, handle: GeometryHandle) -> None:
        pass

    def add_base(self, sphere, atmosphere=None) -> None:
        pass


class ActiveObjectRegistry:
    def __init__(self, scene=None):
        self.scene = scene if scene is not None else NullScene()
        self._handles: Dict[str, GeometryHandle] = {}
        self.pickables: List[pv.DataSet] = []

    def register(self, built: BuiltGeometry, kind: GeometryKind,
                 style: StyleOptions) -> GeometryHandle:
        """
        Store a built geometry and hand it to the scene.

        Args:
            built: Output of a builder
            kind: Geometry kind that produced it
            style: Style it was built with

        Returns:
            The new GeometryHandle

        Raises:
            InvalidHandle: if the primitive is missing or has no meshes
        """
        primitive = built.primitive if built is not None else None
        leaves = list(iter_leaves(primitive))
        if primitive is None or not leaves:
            raise InvalidHandle(f"{kind.value} primitive has nothing to register")

        handle = GeometryHandle(
            id=uuid.uuid4().hex,
            kind=kind,
            primitive=primitive,
            style=style,
            label=built.label,
            anchor=built.anchor,
            leaves=leaves,
        )
        # Only store what the scene accepted
        self.scene.attach(handle)
        self._handles[handle.id] = handle
        self.pickables.extend(leaves)
        LOGGER.debug("Registered %s %s (%d meshes)", kind.value, handle.id, len(leaves))
        return handle

    def remove(self, handle: Union[GeometryHandle, str]) -> GeometryHandle:
        """Detach a handle from the scene and forget it."""
        handle_id = handle.id if isinstance(handle, GeometryHandle) else handle
        try:
            removed = self._handles.pop(handle_id)
        except KeyError:
            raise InvalidHandle(f"Unknown handle id {handle_id!r}") from None

        dropped = {id(leaf) for leaf in removed.leaves}
        self.pickables = [leaf for leaf in self.pickables if id(leaf) not in dropped]
        self.scene.detach(removed)
        return removed

    def get(self, handle_id: str) -> GeometryHandle:
        try:
            return self._handles[handle_id]
        except KeyError:
            raise InvalidHandle(f"Unknown handle id {handle_id!r}") from None

    def handles(self) -> List[GeometryHandle]:
        return list(self._handles.values())

    def __contains__(self, handle) -> bool:
        handle_id = handle.id if isinstance(handle, GeometryHandle) else handle
        return handle_id in self._handles

    def __iter__(self) -> Iterator[GeometryHandle]:
        return iter(list(self._handles.values()))

    def __len__(self) -> int:
        return len(self._handles)
