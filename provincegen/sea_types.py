"""Classify sea tiles as coast, lake, inland sea or by wind belt."""

from __future__ import annotations

import argparse
import enum
import logging
import os
import random
from collections import deque
from pathlib import Path

from .image import Image, from_rgb
from .sea_tiles import TileMap, generate_tiles, is_lake, is_land, new_tile_map

logger = logging.getLogger(__name__)


class SeaTileType(enum.IntEnum):
    """Sea tile classes keyed by their map colour."""

    COAST = from_rgb(25, 255, 255)
    SEA = from_rgb(100, 200, 255)
    SOUTHEASTERLY = from_rgb(255, 100, 100)
    NORTHEASTERLY = from_rgb(100, 100, 255)
    WESTERLY = from_rgb(255, 255, 100)
    POLAR = from_rgb(200, 255, 255)
    LAKE = from_rgb(255, 150, 255)


def find_clusters(
    base_map: Image, tile_map: TileMap, types: dict[int, SeaTileType]
) -> list[set[int]]:
    """Group untyped sea tiles that touch; the map wraps around horizontally."""
    width, height = base_map.width, base_map.height
    neighbors: dict[int, set[int]] = {}
    for i in range(width):
        for j in range(height):
            if is_land(base_map[i, j]):
                continue
            tile_id = tile_map[i][j]
            if tile_id in types:
                continue
            for dx in (-1, 0, 1):
                for dy in (-1, 0, 1):
                    if dx == 0 and dy == 0:
                        continue
                    ni = width - 1 if i + dx < 0 else (i + dx) % width
                    nj = j + dy
                    if not 0 <= nj < height:
                        continue
                    if is_land(base_map[ni, nj]):
                        continue
                    other = tile_map[ni][nj]
                    if other in types:
                        continue
                    neighbors.setdefault(tile_id, set()).add(other)

    clusters: list[set[int]] = []
    while neighbors:
        start = next(iter(neighbors))
        cluster: set[int] = set()
        queue = deque([start])
        while queue:
            current = queue.popleft()
            cluster.add(current)
            for other in neighbors.get(current, ()):
                if other not in cluster:
                    cluster.add(other)
                    queue.append(other)
            neighbors.pop(current, None)
        clusters.append(cluster)
    return clusters


def _latitude_type(average_y: int, height: int) -> SeaTileType:
    step = height // 180
    if average_y < step * 30:
        return SeaTileType.POLAR
    if average_y < step * 60:
        return SeaTileType.WESTERLY
    if average_y < step * 90:
        return SeaTileType.NORTHEASTERLY
    if average_y < step * 120:
        return SeaTileType.SOUTHEASTERLY
    if average_y < step * 150:
        return SeaTileType.WESTERLY
    return SeaTileType.POLAR


def gen_types(map_image: Image, base_image: Image) -> dict[int, SeaTileType]:
    """Type every sea tile colour of ``map_image`` using the terrain of ``base_image``."""
    types: dict[int, SeaTileType] = {}
    rows: dict[int, list[int]] = {}
    tile_map = new_tile_map(base_image.width, base_image.height)

    for i in range(map_image.width):
        for j in range(map_image.height):
            color = map_image[i, j]
            if is_lake(base_image[i, j]):
                types[color] = SeaTileType.LAKE
            tile_map[i][j] = color
            if color in types:
                continue
            if is_land(base_image[i, j]):
                continue
            for dx in (-1, 0, 1):
                for dy in (-1, 0, 1):
                    nx, ny = i + dx, j + dy
                    if not (0 <= nx < map_image.width and 0 <= ny < map_image.height):
                        continue
                    if is_land(base_image[nx, ny]):
                        types[color] = SeaTileType.COAST
            rows.setdefault(color, []).append(j)

    clusters = find_clusters(base_image, tile_map, types)
    largest_index = 0
    largest_size = 0
    for index, cluster in enumerate(clusters):
        if len(cluster) > largest_size:
            largest_size = len(cluster)
            largest_index = index
    for index, cluster in enumerate(clusters):
        if index == largest_index:
            continue
        for tile_id in cluster:
            types.setdefault(tile_id, SeaTileType.SEA)

    for color, ys in rows.items():
        if color in types:
            continue
        types[color] = _latitude_type(sum(ys) // len(ys), base_image.height)

    return types


def fix_sea_tile_file(
    images_dir: str | os.PathLike = "images",
    output_path: str | os.PathLike = "sea_tiles.txt",
) -> dict[int, SeaTileType]:
    """Classify the tiles of ``write_map.png`` and write them to ``output_path``."""
    images = Path(images_dir)
    map_image = Image.load(images / "write_map.png")
    base_image = Image.load(images / "map.png")
    types = gen_types(map_image, base_image)
    with open(output_path, "w", encoding="utf-8") as stream:
        for color, tile_type in types.items():
            stream.write(f"Color: {color}\n")
            stream.write(f"Type: {int(tile_type)}\n")
    return types


def main(argv: list[str] | None = None) -> int:
    """Generate sea tiles and write their types."""
    parser = argparse.ArgumentParser(description="Generate and classify sea tiles.")
    parser.add_argument("--images", default="images", help="directory holding map.png and write_map.png")
    parser.add_argument("--output", default="sea_tiles.txt", help="sea tile file to write")
    parser.add_argument("--seed", type=int, default=None, help="random seed")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO, format="%(message)s")
    generate_tiles(args.images, random.Random(args.seed))
    fix_sea_tile_file(args.images, args.output)
    return 0