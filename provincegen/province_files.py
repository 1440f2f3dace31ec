"""Derive province attribute, border and river files from a finished province map."""

from __future__ import annotations

import argparse
import logging
import os
import random
from collections import defaultdict
from pathlib import Path
from typing import Callable, Iterable

from .image import Image
from .province import Province

logger = logging.getLogger(__name__)

WHITE = 0xFFFFFF
RED = 0xFF0000
LAKE_COLOR = 0xFF00FF
OCEAN_COLOR = 0x00FFFF

ProvincesMap = dict[int, Province]
Point = tuple[int, int]


def _nonzero(color: int) -> bool:
    return color != 0


def _is_river_color(color: int) -> bool:
    return (color & 0xFF) != 0 and (color >> 8) & 0xFFFF == 0


def search_spiral(
    image: Image,
    x: int,
    y: int,
    valid_color: Callable[[int], bool],
    max_radius: int = 10,
) -> int:
    """Walk outward from (x, y) and return the first valid colour, or the colour at (x, y)."""
    current_x, current_y = x, y - 1
    radius = 1
    dx, dy = 1, 1
    while radius < max_radius:
        if 0 <= current_x < image.width and 0 <= current_y < image.height:
            color = image[current_x, current_y]
            if valid_color(color):
                return color
        current_x += dx
        current_y += dy
        if current_x - x > radius or current_y - y > radius or x - current_x > radius:
            current_x -= dx
            current_y -= dy
            dx, dy = -dy, dx
            current_x += dx
            current_y += dy
        elif y - current_y > radius:
            current_x -= 1
            dx, dy = -dy, dx
            radius += 1
    return image[x, y]


def load_provinces(base_map_path: str | os.PathLike, province_image: Image) -> ProvincesMap:
    """Create one province per colour; those lying on lake or ocean are water."""
    base_map = Image.load(base_map_path)
    provinces: ProvincesMap = {}
    for i in range(province_image.width):
        for j in range(province_image.height):
            color = province_image[i, j]
            if color in provinces:
                continue
            water = base_map[i, j] in (LAKE_COLOR, OCEAN_COLOR)
            provinces[color] = Province(color, water)
    return provinces


def generate_neighbors(base_map: Image, provinces: ProvincesMap) -> None:
    """Link land provinces that touch, recording the border pixels on each side."""
    width, height = base_map.width, base_map.height
    for i in range(width):
        for j in range(height):
            color = base_map[i, j]
            province = provinces.get(color)
            if province is None or province.water:
                continue
            for dx in (-1, 0, 1):
                for dy in (-1, 0, 1):
                    if dx == 0 and dy == 0:
                        continue
                    nx, ny = i + dx, j + dy
                    if not (0 <= nx < width and 0 <= ny < height):
                        continue
                    neighbor_color = base_map[nx, ny]
                    if neighbor_color == color:
                        continue
                    neighbor = provinces[neighbor_color]
                    if neighbor.water:
                        continue
                    province.add_neighbor(neighbor)
                    province.add_outline_point(neighbor, i, j)


def _sample_layer(
    base_map: Image,
    provinces: ProvincesMap,
    path: str | os.PathLike,
    max_radius: int,
    keep_fallback: bool,
) -> dict[int, list[int]]:
    layer = Image.load(path)
    samples: dict[int, list[int]] = defaultdict(list)
    for i in range(base_map.width):
        for j in range(base_map.height):
            color = base_map[i, j]
            if provinces[color].water:
                continue
            sample = layer[i, j]
            if not _nonzero(sample):
                sample = search_spiral(layer, i, j, _nonzero, max_radius)
                if not _nonzero(sample) and not keep_fallback:
                    continue
            samples[color].append(sample)
    return samples


def _land(provinces: ProvincesMap) -> Iterable[tuple[int, Province]]:
    return ((color, p) for color, p in provinces.items() if not p.water)


def load_koppen(base_map: Image, provinces: ProvincesMap, path: str | os.PathLike) -> None:
    """Assign each land province its dominant climate from a Köppen map."""
    samples = _sample_layer(base_map, provinces, path, 10, keep_fallback=False)
    for color, province in _land(provinces):
        province.set_koppen(samples.get(color, []))


def load_elevation(base_map: Image, provinces: ProvincesMap, path: str | os.PathLike) -> None:
    """Classify each land province's terrain from an elevation map."""
    samples = _sample_layer(base_map, provinces, path, 3, keep_fallback=True)
    for color, province in _land(provinces):
        province.set_elevation(samples.get(color, []))


def load_vegetation(base_map: Image, provinces: ProvincesMap, path: str | os.PathLike) -> None:
    """Assign each land province its dominant vegetation."""
    samples = _sample_layer(base_map, provinces, path, 3, keep_fallback=True)
    for color, province in _land(provinces):
        province.set_vegetation(samples.get(color, []))


def load_soil(base_map: Image, provinces: ProvincesMap, path: str | os.PathLike) -> None:
    """Assign each land province its dominant soil."""
    samples = _sample_layer(base_map, provinces, path, 3, keep_fallback=True)
    for color, province in _land(provinces):
        province.set_soil(samples.get(color, []))


def draw_impassable_map(
    pairs: Iterable[tuple[Province, Province]],
    width: int,
    height: int,
    output_path: str | os.PathLike,
) -> Image:
    """Paint impassable borders red on a white image and save it."""
    image = Image(output_path, width, height)
    for i in range(width):
        for j in range(height):
            image[i, j] = WHITE
    for province, neighbor in pairs:
        if province.color > neighbor.color:
            continue
        for x, y in province.outline[neighbor]:
            image[x, y] = RED
        for x, y in neighbor.outline[province]:
            image[x, y] = RED
    image.write()
    return image


def generate_impassable_crossings(
    base_map: Image,
    provinces: ProvincesMap,
    output_path: str | os.PathLike,
    image_path: str | os.PathLike = "impassable_crossings.png",
) -> list[tuple[Province, Province]]:
    """Find steep borders, list them in a text file and draw them."""
    pairs: dict[tuple[Province, Province], None] = {}
    for province in provinces.values():
        if province.water:
            continue
        for neighbor in province.impassable_neighbors(base_map):
            pairs[(province, neighbor)] = None
    with open(output_path, "w", encoding="utf-8") as stream:
        for province, neighbor in pairs:
            if province.color > neighbor.color:
                continue
            stream.write(f"Province Color: {province.color}\n")
            stream.write(f"Neighbor Color: {neighbor.color}\n")
    draw_impassable_map(pairs, base_map.width, base_map.height, image_path)
    return list(pairs)


def save_provinces(provinces: ProvincesMap, path: str | os.PathLike = "provinces.txt") -> None:
    """Write the record of every land province."""
    with open(path, "w", encoding="utf-8") as stream:
        for province in provinces.values():
            province.write(stream)


def find_river(
    base_image: Image, river_image: Image, province: Province, neighbor: Province
) -> set[Point]:
    """River pixels reachable from the border of two provinces, staying inside them."""
    allowed = (province.color, neighbor.color)
    found: set[Point] = set()
    stack: list[Point] = []

    def visit(x: int, y: int) -> None:
        if (x, y) not in found:
            found.add((x, y))
            stack.append((x, y))

    for border in (province.outline[neighbor], neighbor.outline[province]):
        for x, y in border:
            if _is_river_color(river_image[x, y]):
                visit(x, y)

    while stack:
        x, y = stack.pop()
        for dx, dy in ((-1, 0), (0, -1), (0, 1), (1, 0)):
            nx, ny = x + dx, y + dy
            if not (0 <= nx < river_image.width and 0 <= ny < river_image.height):
                continue
            if _is_river_color(river_image[nx, ny]) and base_image[nx, ny] in allowed:
                visit(nx, ny)
    return found


def river_between(river_map: Image, province: Province, neighbor: Province) -> bool:
    """True when more than 30% of the shared border lies on river pixels."""
    total = 0
    on_river = 0
    for border in (province.outline[neighbor], neighbor.outline[province]):
        for x, y in border:
            if _is_river_color(river_map[x, y]):
                on_river += 1
            total += 1
    return total * 0.3 < on_river


def generate_rivers(
    base_map: Image,
    provinces: ProvincesMap,
    river_file_path: str | os.PathLike,
    river_tile_file_path: str | os.PathLike,
    rng: random.Random | None = None,
) -> list[tuple[int, int]]:
    """Carve river tiles into the province map and record rivers between provinces."""
    rng = rng if rng is not None else random.Random()
    river_image = Image.load(river_file_path)

    rivers: dict[tuple[Province, Province], set[Point]] = {}
    for province in provinces.values():
        if province.water:
            continue
        for neighbor in province.neighbors:
            if neighbor.water or not river_between(river_image, province, neighbor):
                continue
            if province.color < neighbor.color:
                points = find_river(base_map, river_image, province, neighbor)
                if points:
                    rivers[(province, neighbor)] = points

    used = {base_map[i, j] for i in range(base_map.width) for j in range(base_map.height)}
    river_colors: list[tuple[int, int]] = []

    for (province, neighbor), points in rivers.items():
        size = sum(river_image.rgb(x, y)[2] for x, y in points) // len(points)

        new_color = rng.randint(0x000000, 0xFFFFFE)
        while new_color in used:
            new_color = rng.randint(0x000000, 0xFFFFFE)

        placed = False
        for x, y in points:
            if base_map[x, y] not in (province.color, neighbor.color):
                continue
            base_map[x, y] = new_color
            placed = True
        if placed:
            used.add(new_color)
            river_colors.append((new_color, size))
            provinces.setdefault(new_color, Province(new_color, True))

        if len(points) > 4:
            province.add_river(neighbor, size)
            neighbor.add_river(province, size)

    with open(river_tile_file_path, "w", encoding="utf-8") as stream:
        for color, size in river_colors:
            stream.write(f"River Color: {color}\n")
            stream.write(f"River Size: {size}\n")
    base_map.write()
    return river_colors


def write_rivers(provinces: ProvincesMap, output_path: str | os.PathLike) -> None:
    """Write each river between two provinces once."""
    with open(output_path, "w", encoding="utf-8") as stream:
        for province in provinces.values():
            for neighbor, size in province.rivers.items():
                if province.color > neighbor.color:
                    continue
                stream.write(f"Province Color: {province.color}\n")
                stream.write(f"Neighbor Color: {neighbor.color}\n")
                stream.write(f"River Size: {size}\n")


def draw_river_map(
    base_map: Image, provinces: ProvincesMap, output_path: str | os.PathLike
) -> Image:
    """Draw river sizes along province borders; everything else is white."""
    image = Image(output_path, base_map.width, base_map.height)
    for i in range(base_map.width):
        for j in range(base_map.height):
            image[i, j] = provinces[base_map[i, j]].river_color(i, j)
    image.write()
    return image


def find_entire_river(base_map: Image, x: int, y: int) -> set[Point]:
    """All river pixels connected to (x, y), plus the pixels bordering them."""
    points: set[Point] = {(x, y)}
    stack: list[Point] = [(x, y)]
    while stack:
        cx, cy = stack.pop()
        for dx in (-1, 0, 1):
            for dy in (-1, 0, 1):
                if dx == 0 and dy == 0:
                    continue
                nx, ny = cx + dx, cy + dy
                if not (0 <= nx < base_map.width and 0 <= ny < base_map.height):
                    continue
                if (nx, ny) in points:
                    continue
                points.add((nx, ny))
                if _is_river_color(base_map[nx, ny]):
                    stack.append((nx, ny))
    return points


def draw_map(
    base_map: Image,
    provinces: ProvincesMap,
    output_path: str | os.PathLike,
    color_func: Callable[[Province], int],
) -> Image:
    """Paint each province with the colour ``color_func`` gives it."""
    image = Image(output_path, base_map.width, base_map.height)
    for i in range(base_map.width):
        for j in range(base_map.height):
            province = provinces.get(base_map[i, j])
            image[i, j] = color_func(province) if province is not None else WHITE
    image.write()
    return image


def generate_province_files(
    images_dir: str | os.PathLike = "images", output_dir: str | os.PathLike = "."
) -> ProvincesMap:
    """Run the whole pipeline over the images in ``images_dir``."""
    images = Path(images_dir)
    out = Path(output_dir)
    province_image = Image.load(images / "write_map.png")

    provinces = load_provinces(images / "map.png", province_image)
    logger.info("Loaded %d provinces.", len(provinces))

    generate_neighbors(province_image, provinces)
    logger.info("Generated neighbors for provinces.")

    load_koppen(province_image, provinces, images / "koppen.png")
    logger.info("Loaded Koppen climate data.")
    load_elevation(province_image, provinces, images / "elevation.png")
    logger.info("Loaded elevation data.")
    load_vegetation(province_image, provinces, images / "vegetation.png")
    logger.info("Loaded vegetation data.")
    load_soil(province_image, provinces, images / "soil.png")
    logger.info("Loaded soil data.")

    draw_map(province_image, provinces, out / "koppen_generated.png", Province.koppen_color)
    logger.info("Generated Koppen map.")
    draw_map(province_image, provinces, out / "elevation_generated.png", Province.elevation_color)
    logger.info("Generated elevation map.")
    draw_map(province_image, provinces, out / "vegetation_generated.png", Province.vegetation_color)
    logger.info("Generated vegetation map.")
    draw_map(province_image, provinces, out / "soil_generated.png", Province.soil_color)
    logger.info("Generated soil map.")

    generate_impassable_crossings(
        Image.load(images / "map.png"),
        provinces,
        out / "impassable_crossings.txt",
        out / "impassable_crossings.png",
    )
    logger.info("Generated impassable crossings.")

    save_provinces(provinces, out / "provinces.txt")
    logger.info("Saved provinces data.")

    generate_rivers(province_image, provinces, images / "map.png", out / "river_tiles.txt")
    logger.info("Generated rivers data.")

    draw_river_map(province_image, provinces, out / "rivers_generated.png")
    logger.info("Generated river map.")

    write_rivers(provinces, out / "rivers.txt")
    logger.info("Saved rivers data.")
    return provinces


def main(argv: list[str] | None = None) -> int:
    """Generate province data files from the map images."""
    parser = argparse.ArgumentParser(description="Generate province data files from map images.")
    parser.add_argument("--images", default="images", help="directory holding the input images")
    parser.add_argument("--output", default=".", help="directory for the generated files")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO, format="%(message)s")
    generate_province_files(args.images, args.output)
    return 0