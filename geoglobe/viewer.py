#!/usr/bin/env python3
"""
Interactive 3D globe viewer for GeoJSON files.

Usage:
    python -m geoglobe.viewer data/continents.geojson
    python -m geoglobe.viewer data.geojson --config globe.yaml --texture URL
"""

import argparse
import asyncio
import json
import logging
from dataclasses import replace
from pathlib import Path
from typing import Any, List, Mapping, Optional

from .config import GlobeConfig, load_config
from .errors import GeoGlobeError
from .globe import Globe
from .scene import PyVistaScene

LOGGER = logging.getLogger(__name__)


def load_document(path) -> Mapping[str, Any]:
    """Read a GeoJSON file into a mapping."""
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Drape GeoJSON features over a 3D globe.")
    parser.add_argument("geojson", type=Path, nargs="*", help="GeoJSON files to display")
    parser.add_argument("--config", type=Path, help="YAML configuration file")
    parser.add_argument("--texture", help="URL of an equirectangular surface texture")
    parser.add_argument("--no-graticule", action="store_true", help="Hide parallels and meridians")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return parser


async def populate(globe: Globe, documents: List[Mapping[str, Any]]) -> int:
    """Initialise the globe and add every document; returns the handle count."""
    await globe.initialize()
    for document in documents:
        result = await globe.add_geojson(document)
        if isinstance(result, list):
            print(f"  Added {len(result)} features")
        elif result is not None:
            print(f"  Added {result.kind.value}")
    return len(globe.registry)


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    print("=" * 60)
    print("3D Globe Visualization from GeoJSON")
    print("=" * 60)

    try:
        config = load_config(args.config) if args.config else GlobeConfig()
        documents = [load_document(path) for path in args.geojson]
    except (OSError, json.JSONDecodeError, GeoGlobeError) as exc:
        LOGGER.error("Could not read input: %s", exc)
        return 1
    if args.texture:
        config = replace(config, texture_url=args.texture)

    scene = PyVistaScene(config=config)
    globe = Globe(config, scene)
    try:
        count = asyncio.run(populate(globe, documents))
    except (GeoGlobeError, ValueError) as exc:
        # Bad coordinates or style values in the input
        LOGGER.error("%s", exc)
        return 1

    if not args.no_graticule:
        scene.add_graticule()

    print(f"Total geometries: {count}")
    print("\n" + "=" * 60)
    print("CONTROLS (Terrain Style):")
    print("  Left-drag:  Rotate globe")
    print("  Right-drag: Pan view")
    print("  Scroll:     Zoom in/out")
    print("  Q or ESC:   Close window")
    print("=" * 60)

    scene.show(title="geoglobe")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
