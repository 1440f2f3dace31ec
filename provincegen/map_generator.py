"""Grow random provinces over a base map and paint them into an image."""

from __future__ import annotations

import argparse
import enum
import logging
import random
import time

from .image import Image, from_rgb
from .mapgen_utils import elevation, is_river, is_water, search_spiral

logger = logging.getLogger(__name__)

PROVINCE_DENSITY = 13
NULL_PROVINCE = 0

_DIRECTIONS = ((0, -1), (-1, 0), (1, 0), (0, 1), (-1, -1), (-1, 1), (1, -1), (1, 1))


class Stage(enum.Enum):
    """Which pixels provinces may grow into."""

    LAND = "land"
    RIVERS = "rivers"
    OCEAN = "ocean"

    def blocks(self, color: int) -> bool:
        if self is Stage.LAND:
            return is_water(color)
        if self is Stage.RIVERS:
            return is_water(color) and not is_river(color)
        return False


class ProvinceGrid:
    """Province id per pixel, with the per-pixel flags used while growing."""

    def __init__(self, width: int, height: int) -> None:
        self.width = width
        self.height = height
        self.ids = [[NULL_PROVINCE] * height for _ in range(width)]
        self.fresh = [[False] * height for _ in range(width)]
        self.done = [[False] * height for _ in range(width)]
        self.filled = 0

    def reset_flags(self) -> None:
        """Clear the fresh and done flags of every pixel."""
        for column in self.fresh:
            column[:] = [False] * self.height
        for column in self.done:
            column[:] = [False] * self.height


def _jitter(rng: random.Random) -> int:
    return int(rng.random() * PROVINCE_DENSITY / 2 - PROVINCE_DENSITY / 4.0)


def _jittered_position(base_map: Image, i: int, j: int, rng: random.Random) -> tuple[int, int]:
    x = i + _jitter(rng)
    y = j + _jitter(rng)
    if not (0 <= x < base_map.width and 0 <= y < base_map.height):
        return i, j
    if is_water(base_map[x, y]):
        return i, j
    return x, y


def _seed_near_water(
    base_map: Image, grid: ProvinceGrid, i: int, j: int, province_id: int, rng: random.Random
) -> None:
    max_radius = PROVINCE_DENSITY // 4
    px, py = i, j + 1
    dx, dy = -1, 0
    radius = 1
    while True:
        if 0 <= px < base_map.width and 0 <= py < base_map.height:
            if grid.ids[px][py] == NULL_PROVINCE and not is_water(base_map[px, py]):
                grid.ids[px][py] = province_id
                grid.filled += 1
                return
        if abs(px - i + dx) > radius or abs(py - j + dy) > radius:
            if (dx, dy) == (0, 1):
                radius += 1
                px += 1
                py += 1
                dx, dy = -1, 0
            else:
                dx, dy = -dy, dx
        else:
            px += dx
            py += dy

        if radius > max_radius:
            x, y = _jittered_position(base_map, i, j, rng)
            grid.ids[x][y] = province_id
            return


def seed_provinces(base_map: Image, grid: ProvinceGrid, rng: random.Random) -> int:
    """Place one seed per lattice cell; return the id after the last one used."""
    next_id = 1
    start = PROVINCE_DENSITY // 2
    for i in range(start, base_map.width, PROVINCE_DENSITY):
        for j in range(start, base_map.height, PROVINCE_DENSITY):
            if is_water(base_map[i, j]):
                _seed_near_water(base_map, grid, i, j, next_id, rng)
            else:
                x, y = _jittered_position(base_map, i, j, rng)
                grid.ids[x][y] = next_id
            next_id += 1
            grid.filled += 1
    return next_id


def fill_provinces(
    base_map: Image,
    grid: ProvinceGrid,
    stage: Stage,
    do_corners: bool,
    rng: random.Random,
) -> None:
    """Grow provinces into empty neighbours until nothing changes."""
    randomness = 2
    directions = _DIRECTIONS if do_corners else _DIRECTIONS[:4]
    width, height = base_map.width, base_map.height
    ids, fresh, done = grid.ids, grid.fresh, grid.done
    nudge = 0.8
    recent = (0, 0)
    started = time.perf_counter()
    changed = True

    while changed:
        nudge += 0.01
        changed = False
        now = time.perf_counter()
        logger.info(
            "time taken: %.3fs Filled pixels: %d Recent Changed Pixel: %d, %d",
            now - started, grid.filled, recent[0], recent[1],
        )
        started = now

        for i in range(width):
            for j in range(height):
                if done[i][j] or ids[i][j] == NULL_PROVINCE:
                    continue
                here = base_map[i, j]
                if stage.blocks(here):
                    continue
                if fresh[i][j]:
                    fresh[i][j] = False
                    changed = True
                    continue

                empty_neighbor = False
                for dx, dy in directions:
                    nx, ny = i + dx, j + dy
                    if not (0 <= nx < width and 0 <= ny < height):
                        continue
                    if ids[nx][ny] != NULL_PROVINCE:
                        continue
                    there = base_map[nx, ny]
                    if stage.blocks(there):
                        continue

                    this_elevation = elevation(here)
                    neighbor_elevation = elevation(there)
                    if this_elevation < 0 or neighbor_elevation < 0:
                        difference = 20
                    else:
                        difference = abs(this_elevation - neighbor_elevation)

                    if rng.random() ** nudge < 1.0 / (randomness + difference * difference):
                        ids[nx][ny] = ids[i][j]
                        grid.filled += 1
                        recent = (nx, ny)
                        if dx > 0 or dy > 0:
                            fresh[nx][ny] = True
                    else:
                        empty_neighbor = True
                    changed = True

                if not empty_neighbor:
                    done[i][j] = True


def generate_province_sizes(base_map: Image, grid: ProvinceGrid) -> dict[int, int]:
    """Count land pixels per province id; ids seen only on water count zero."""
    sizes: dict[int, int] = {}
    for i in range(base_map.width):
        for j in range(base_map.height):
            province_id = grid.ids[i][j]
            sizes.setdefault(province_id, 0)
            if is_water(base_map[i, j]):
                continue
            sizes[province_id] += 1
    return sizes


def _resolve(merges: dict[int, int], province_id: int) -> int:
    target = merges[province_id]
    while target in merges:
        target = merges[target]
    return target


def merge_provinces(
    base_map: Image,
    merges: dict[int, int],
    sizes: dict[int, int],
    grid: ProvinceGrid,
    radius: int,
    min_province_size: int,
) -> None:
    """Record in ``merges`` a nearby target for every province smaller than the minimum."""
    ids = grid.ids
    for i in range(base_map.width):
        for j in range(base_map.height):
            own = ids[i][j]
            if own in merges or sizes[own] >= min_province_size:
                continue
            if is_water(base_map[i, j]):
                continue

            def is_valid_pixel(x: int, y: int, own: int = own) -> bool:
                if not (0 <= x < base_map.width and 0 <= y < base_map.height):
                    return False
                if is_water(base_map[x, y]):
                    return False
                other = ids[x][y]
                if other == own:
                    return False
                if other in merges and _resolve(merges, other) == own:
                    return False
                return True

            x, y = search_spiral(i, j, is_valid_pixel, radius)
            if x == -1:
                continue

            other = ids[x][y]
            merges[own] = _resolve(merges, other) if other in merges else other


def _apply_merges(grid: ProvinceGrid, merges: dict[int, int]) -> None:
    for column in grid.ids:
        for j, province_id in enumerate(column):
            if province_id not in merges:
                continue
            target = merges[province_id]
            while target in merges:
                if target == province_id or target == merges[target]:
                    break
                target = merges[target]
            column[j] = target


def generate_provinces(
    write_image: Image, base_map: Image, rng: random.Random | None = None
) -> ProvinceGrid:
    """Grow provinces over ``base_map`` and paint them into ``write_image``."""
    rng = rng if rng is not None else random.Random()
    grid = ProvinceGrid(base_map.width, base_map.height)

    num_provinces = seed_provinces(base_map, grid, rng)

    stage = Stage.LAND
    do_corners = False
    fill_provinces(base_map, grid, stage, do_corners, rng)

    while stage is not Stage.OCEAN:
        if not do_corners and stage is Stage.LAND:
            grid.reset_flags()
            do_corners = True
        else:
            do_corners = False
            stage = Stage.RIVERS if stage is Stage.LAND else Stage.OCEAN
            logger.info("Water provinces generation started.")
            grid.reset_flags()
        fill_provinces(base_map, grid, stage, do_corners, rng)

    sizes = generate_province_sizes(base_map, grid)
    merges: dict[int, int] = {}
    merge_provinces(base_map, merges, sizes, grid, 1, 50)
    merge_provinces(base_map, merges, sizes, grid, 15, 15)
    _apply_merges(grid, merges)

    colors: dict[int, int] = {}
    used: set[int] = set()
    for province_id in range(1, num_provinces + 1):
        while True:
            value = int(rng.random() * (256 * 256 * 256 - 1))
            if value not in used:
                break
        used.add(value)
        colors[province_id] = value

    for i in range(base_map.width):
        for j in range(base_map.height):
            color = base_map[i, j]
            if is_water(color) and not is_river(color):
                write_image[i, j] = 0xFFFFFF
            else:
                value = colors.get(grid.ids[i][j], 0)
                write_image[i, j] = from_rgb(value & 0xFF, (value >> 8) & 0xFF, (value >> 16) & 0xFF)

    return grid


def main(argv: list[str] | None = None) -> int:
    """Generate a province map from a base map image."""
    parser = argparse.ArgumentParser(description="Generate random provinces for a base map.")
    parser.add_argument("--input", default="images/map.png", help="base map image")
    parser.add_argument("--output", default="images/write_map.png", help="province map to write")
    parser.add_argument("--seed", type=int, default=None, help="random seed")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO, format="%(message)s")
    base_map = Image.load(args.input)
    write_image = Image(args.output, base_map.width, base_map.height)
    generate_provinces(write_image, base_map, random.Random(args.seed))
    write_image.write()
    return 0