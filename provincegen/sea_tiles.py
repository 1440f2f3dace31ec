"""Split sea and lake areas into tiles and paint them into the province map."""

from __future__ import annotations

import logging
import os
import random
from pathlib import Path

from .image import Image, to_rgb

logger = logging.getLogger(__name__)

TILE_SIZE = 100
WHITE = 0xFFFFFF

TileMap = list[list[int]]
Point = tuple[int, int]


class TileIdAllocator:
    """Hands out consecutive tile ids starting at 1."""

    def __init__(self, start: int = 1) -> None:
        self._next = start

    def next(self) -> int:
        """Return the next unused id."""
        value = self._next
        self._next += 1
        return value


def is_lake(color: int) -> bool:
    """Lakes are drawn in magenta."""
    return to_rgb(color) == (255, 0, 255)


def is_ocean(color: int) -> bool:
    """Oceans are drawn in cyan."""
    return to_rgb(color) == (0, 255, 255)


def is_land(color: int) -> bool:
    """Land shades: reds without green or blue, oranges, and yellows to white."""
    r, g, b = to_rgb(color)
    if r != 255 and g == 0 and b == 0:
        return True
    if r == 255 and g != 255 and b == 0:
        return True
    if r == 255 and g == 255:
        return True
    return False


def new_tile_map(width: int, height: int) -> TileMap:
    """An empty tile map, indexed ``[x][y]``."""
    return [[0] * height for _ in range(width)]


def find_entire_lake(base_map: Image, tile_map: TileMap, x: int, y: int) -> set[Point]:
    """Unassigned lake pixels connected (diagonals included) to (x, y)."""
    width, height = base_map.width, base_map.height
    lake: set[Point] = set()
    search: set[Point] = {(x, y)}

    while search:
        current, search = search, set()
        for lx, ly in current:
            if (lx, ly) in lake:
                continue
            lake.add((lx, ly))
            for dx in (-1, 0, 1):
                for dy in (-1, 0, 1):
                    if dx == 0 and dy == 0:
                        continue
                    nx, ny = lx + dx, ly + dy
                    if not (0 <= nx < width and 0 <= ny < height):
                        continue
                    if not is_lake(base_map[nx, ny]) or tile_map[nx][ny] != 0:
                        continue
                    if (nx, ny) in lake:
                        continue
                    search.add((nx, ny))
    return lake


def generate_lakes(base_map: Image, tile_map: TileMap, ids: TileIdAllocator) -> None:
    """Give every connected lake its own tile id."""
    for i in range(base_map.width):
        for j in range(base_map.height):
            if not is_lake(base_map[i, j]) or tile_map[i][j] != 0:
                continue
            lake = find_entire_lake(base_map, tile_map, i, j)
            if not lake:
                continue
            tile_id = ids.next()
            for tx, ty in lake:
                tile_map[tx][ty] = tile_id


def spread_ocean_tiles(
    base_map: Image,
    tile_map: TileMap,
    spread_from_land: bool,
    do_corners: bool,
    rng: random.Random,
) -> int:
    """Grow tiles into empty pixels until nothing changes; return the pixels filled.

    With ``do_corners`` set, growth is limited to the four straight neighbours.
    """
    width, height = base_map.width, base_map.height
    settled = [[False] * height for _ in range(width)]
    fresh = [[False] * height for _ in range(width)]
    offsets = [
        (dx, dy)
        for dx in (-1, 0, 1)
        for dy in (-1, 0, 1)
        if (dx, dy) != (0, 0) and not (do_corners and dx != 0 and dy != 0)
    ]
    filled = 0
    nudge = 1.0
    changed = True

    while changed:
        nudge += 0.01
        changed = False
        logger.info("Spreading ocean tiles, filled pixels: %d", filled)
        for i in range(width):
            for j in range(height):
                if fresh[i][j]:
                    fresh[i][j] = False
                    changed = True
                    continue
                if settled[i][j] or tile_map[i][j] == 0:
                    continue
                color = base_map[i, j]
                if is_lake(color):
                    continue
                if not spread_from_land and is_land(color):
                    continue
                settled[i][j] = True
                for dx, dy in offsets:
                    ni, nj = i + dx, j + dy
                    if not (0 <= ni < width and 0 <= nj < height):
                        continue
                    if tile_map[ni][nj] != 0:
                        continue
                    settled[i][j] = False
                    if rng.random() ** nudge < 0.5:
                        tile_map[ni][nj] = tile_map[i][j]
                        fresh[ni][nj] = True
                        filled += 1
                    changed = True
    return filled


def generate_ocean_tiles(
    base_map: Image, tile_map: TileMap, ids: TileIdAllocator, rng: random.Random
) -> int:
    """Seed ocean tiles on a jittered lattice and grow them; return the pixels filled."""
    jitter = TILE_SIZE // 3
    width, height = base_map.width, base_map.height
    for i in range(TILE_SIZE // 2, width, TILE_SIZE):
        for j in range(TILE_SIZE // 2, height, TILE_SIZE):
            ni = i + rng.randint(-jitter, jitter)
            nj = j + rng.randint(-jitter, jitter)
            if not (0 <= ni < width and 0 <= nj < height):
                continue
            if tile_map[ni][nj] != 0:
                continue
            tile_map[ni][nj] = ids.next()

    filled = spread_ocean_tiles(base_map, tile_map, False, False, rng)
    filled += spread_ocean_tiles(base_map, tile_map, False, True, rng)
    filled += spread_ocean_tiles(base_map, tile_map, True, False, rng)
    return filled


def write_sea_tiles(
    province_map: Image, tile_map: TileMap, ids: TileIdAllocator, rng: random.Random
) -> dict[int, int]:
    """Colour the white pixels of the province map by tile and save it.

    Returns the colour chosen for each tile id.
    """
    used = {
        province_map[i, j]
        for i in range(province_map.width)
        for j in range(province_map.height)
    }
    colors: dict[int, int] = {}
    max_id = ids.next()
    for tile_id in range(1, max_id):
        color = rng.randint(0, 255 * 256 * 256 - 1)
        while color in used:
            color = rng.randint(0, 255 * 256 * 256 - 1)
        colors[tile_id] = color
        used.add(color)

    for i in range(province_map.width):
        for j in range(province_map.height):
            tile_id = tile_map[i][j]
            if tile_id == 0 or province_map[i, j] != WHITE:
                continue
            province_map[i, j] = colors[tile_id]

    province_map.write()
    return colors


def generate_tiles(
    images_dir: str | os.PathLike = "images", rng: random.Random | None = None
) -> TileMap:
    """Build sea tiles for ``map.png`` and paint them into ``write_map.png``."""
    rng = rng if rng is not None else random.Random()
    images = Path(images_dir)
    base_map = Image.load(images / "map.png")
    province_map = Image.load(images / "write_map.png")
    tile_map = new_tile_map(base_map.width, base_map.height)
    ids = TileIdAllocator()
    generate_lakes(base_map, tile_map, ids)
    generate_ocean_tiles(base_map, tile_map, ids, rng)
    write_sea_tiles(province_map, tile_map, ids, rng)
    return tile_map