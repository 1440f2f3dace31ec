"""Colour classification and spiral search used while growing provinces."""

from __future__ import annotations

from typing import Callable

from .image import to_rgb

OCEAN_COLOR = 0x00FFFF
LAKE_COLOR = 0xFF00FF


def is_river(color: int) -> bool:
    """A river pixel is pure blue of any intensity."""
    r, g, b = to_rgb(color)
    return r == 0 and g == 0 and b != 0


def is_water(color: int) -> bool:
    """Ocean, lake or river pixels count as water."""
    return color in (OCEAN_COLOR, LAKE_COLOR) or is_river(color)


def elevation(color: int) -> int:
    """Sum of the channels of a land pixel, or -1 for water."""
    if is_water(color):
        return -1
    return sum(to_rgb(color))


def search_spiral(
    x: int,
    y: int,
    valid_pixel: Callable[[int, int], bool],
    max_radius: int = 10,
) -> tuple[int, int]:
    """Walk outward in diamond rings from (x, y); return the first valid pixel or (-1, -1)."""
    current_x, current_y = x, y - 1
    radius = 1
    dx, dy = 1, 1
    while radius <= max_radius:
        if valid_pixel(current_x, current_y):
            return current_x, current_y
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
    return -1, -1