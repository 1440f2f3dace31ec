"""Provinces with their climate, terrain, borders and rivers."""

from __future__ import annotations

import enum
from collections import Counter
from typing import Iterable, TextIO

from .image import Image, from_rgb, to_rgb

WHITE = 0xFFFFFF


class Koppen(enum.IntEnum):
    """Köppen climate classes keyed by their map colour."""

    NONE = 0
    AF = from_rgb(0, 0, 255)
    AM = from_rgb(0, 120, 255)
    AW = from_rgb(70, 170, 250)
    BWH = from_rgb(255, 0, 0)
    BWK = from_rgb(255, 150, 150)
    BSH = from_rgb(245, 165, 0)
    BSK = from_rgb(255, 220, 100)
    CSA = from_rgb(255, 255, 0)
    CSB = from_rgb(200, 200, 0)
    CSC = from_rgb(150, 150, 0)
    CWA = from_rgb(150, 255, 150)
    CWB = from_rgb(100, 200, 100)
    CWC = from_rgb(50, 150, 50)
    CFA = from_rgb(200, 255, 80)
    CFB = from_rgb(100, 255, 80)
    CFC = from_rgb(50, 200, 0)
    DSA = from_rgb(255, 0, 255)
    DSB = from_rgb(200, 0, 200)
    DSC = from_rgb(150, 50, 150)
    DSD = from_rgb(150, 100, 150)
    DWA = from_rgb(170, 175, 255)
    DWB = from_rgb(90, 120, 220)
    DWC = from_rgb(78, 80, 180)
    DWD = from_rgb(50, 0, 135)
    DFA = from_rgb(0, 255, 255)
    DFB = from_rgb(55, 200, 255)
    DFC = from_rgb(0, 125, 125)
    DFD = from_rgb(0, 70, 95)
    ET = from_rgb(178, 178, 178)
    EF = from_rgb(102, 102, 102)


class Elevation(enum.IntEnum):
    """Terrain classes keyed by their map colour."""

    NONE = 0
    FLATLAND = from_rgb(0, 255, 0)
    HILLS = from_rgb(30, 200, 200)
    PLATEAU = from_rgb(200, 200, 10)
    HIGHLANDS = from_rgb(200, 10, 10)
    MOUNTAINS = from_rgb(50, 20, 20)


class Vegetation(enum.IntEnum):
    """Vegetation classes keyed by their map colour."""

    NONE = 0
    TROPICAL_EVERGREEN_BROADLEAF_FOREST = from_rgb(28, 85, 16)
    TROPICAL_SEMI_EVERGREEN_BROADLEAF_FOREST = from_rgb(101, 146, 8)
    TROPICAL_DECIDUOUS_BROADLEAF_FOREST_AND_WOODLAND = from_rgb(174, 125, 32)
    WARM_TEMPERATE_EVERGREEN_AND_MIXED_FOREST = from_rgb(0, 0, 101)
    COOL_TEMPERATE_RAINFOREST = from_rgb(187, 203, 53)
    COOL_EVERGREEN_NEEDLELEAF_FOREST = from_rgb(0, 154, 24)
    COOL_MIXED_FOREST = from_rgb(202, 255, 202)
    TEMPERATE_DECIDUOUS_BROADLEAF_FOREST = from_rgb(85, 235, 73)
    COLD_DECIDUOUS_FOREST = from_rgb(101, 178, 255)
    COLD_EVERGREEN_NEEDLELEAF_FOREST = from_rgb(0, 32, 202)
    TEMPERATE_SCLEROPHYLL_WOODLAND_AND_SHRUBLAND = from_rgb(142, 162, 40)
    TEMPERATE_EVERGREEN_NEEDLELEAF_OPEN_WOODLAND = from_rgb(255, 154, 223)
    TROPICAL_SAVANNA = from_rgb(186, 255, 53)
    XEROPHYTIC_WOODS_SCRUB = from_rgb(255, 186, 154)
    STEPPE = from_rgb(255, 186, 53)
    DESERT = from_rgb(247, 255, 202)
    GRAMINOID_AND_FORB_TUNDRA = from_rgb(231, 231, 24)
    ERECT_DWARF_SHRUB_TUNDRA = from_rgb(121, 134, 73)
    LOW_AND_HIGH_SHRUB_TUNDRA = from_rgb(101, 255, 154)
    PROSTRATE_DWARF_SHRUB_TUNDRA = from_rgb(210, 158, 150)


class Soil(enum.IntEnum):
    """Soil classes keyed by their map colour."""

    NONE = 0
    ACRISOLS = from_rgb(247, 153, 29)
    ALBELUVISOLS = from_rgb(155, 157, 87)
    ALISOLS = from_rgb(250, 247, 192)
    ANDOSOLS = from_rgb(237, 58, 51)
    ARENOSOLS = from_rgb(247, 216, 172)
    CALCISOLS = from_rgb(255, 238, 0)
    CAMBISOLS = from_rgb(254, 205, 103)
    CHERNOZEMS = from_rgb(226, 200, 55)
    CRYOSOLS = from_rgb(117, 106, 146)
    DURISOLS = from_rgb(239, 230, 191)
    FERRASOLS = from_rgb(246, 135, 45)
    FLUVISOLS = from_rgb(1, 176, 239)
    GLEYSOLS = from_rgb(146, 145, 185)
    GYPSISOLS = from_rgb(251, 246, 165)
    HISTOSOLS = from_rgb(139, 137, 138)
    KASTANOZEMS = from_rgb(201, 149, 128)
    LEPTOSOLS = from_rgb(213, 214, 216)
    LIXISOLS = from_rgb(249, 189, 191)
    LUVISOLS = from_rgb(244, 131, 133)
    NITISOLS = from_rgb(247, 160, 130)
    PHAEOZEMS = from_rgb(186, 104, 80)
    PLANOSOLS = from_rgb(245, 147, 84)
    PLINTHOSOLS = from_rgb(111, 14, 65)
    PODZOLS = from_rgb(13, 175, 99)
    REGOSOLS = from_rgb(255, 226, 174)
    SOLONCHAKS = from_rgb(237, 57, 148)
    SOLONETZ = from_rgb(244, 205, 226)
    STAGNOSOLS = from_rgb(64, 193, 235)
    UMBRISOLS = from_rgb(97, 143, 130)
    VERTISOLS = from_rgb(158, 86, 124)


def _most_common(counts: Counter) -> int:
    """The value with the highest count; ties go to the smallest value."""
    return max(sorted(counts), key=lambda value: counts[value])


def color_elevation(color: int) -> int:
    """Elevation read from an elevation-map colour: the sum of its upper three bytes."""
    return ((color >> 8) & 0xFF) + ((color >> 16) & 0xFF) + ((color >> 24) & 0xFF)


def roughness(elevations: Iterable[int]) -> int:
    """Spread between the lower and upper quartile; zero for fewer than four values."""
    ordered = sorted(elevations)
    count = len(ordered)
    if count < 4:
        return 0
    lower = int(count * 0.25)
    upper = lower + int(count * 0.5)
    return ordered[upper] - ordered[lower]


def color_is_water(color: int) -> bool:
    """Rivers (pure blue), lakes (magenta) and ocean (cyan) are water."""
    r, g, b = to_rgb(color)
    if r == 0 and g == 0 and b != 0:
        return True
    if (r, g, b) == (255, 0, 255):
        return True
    if (r, g, b) == (0, 255, 255):
        return True
    return False


class Province:
    """A province identified by its map colour, with its attributes and borders."""

    def __init__(self, color: int = 0, water: bool = False) -> None:
        self.color = color
        self.water = water
        self.koppen: int = Koppen.NONE
        self.elevation: int = Elevation.NONE
        self.vegetation: int = Vegetation.NONE
        self.soil: int = Soil.NONE
        self.neighbors: set[Province] = set()
        self.outline: dict[Province, set[tuple[int, int]]] = {}
        self.rivers: dict[Province, int] = {}
        self.roughness = 0
        self.average_elevation = 0

    def __repr__(self) -> str:
        return f"Province(color={self.color:#08x}, water={self.water})"

    def set_koppen(self, colors: Iterable[int]) -> None:
        """Take the most frequent non-empty climate colour."""
        counts = Counter(color for color in colors if color != Koppen.NONE)
        self.koppen = _most_common(counts) if counts else Koppen.NONE

    def koppen_color(self) -> int:
        return int(self.koppen)

    def set_elevation(self, colors: Iterable[int]) -> None:
        """Classify terrain from the mean and roughness of the sampled elevations."""
        elevations = [color_elevation(color) for color in colors]
        if not elevations:
            self.elevation = Elevation.NONE
            return

        rough = roughness(elevations)
        self.roughness = rough
        average = int(sum(elevations) / len(elevations))
        self.average_elevation = average

        if rough > 25:
            self.elevation = Elevation.HILLS if average < 150 else Elevation.MOUNTAINS
        elif rough > 10:
            if average < 70:
                self.elevation = Elevation.FLATLAND
            elif average < 150:
                self.elevation = Elevation.HILLS
            elif average < 300:
                self.elevation = Elevation.PLATEAU
            else:
                self.elevation = Elevation.HIGHLANDS
        else:
            if average < 70:
                self.elevation = Elevation.FLATLAND
            elif average < 200:
                self.elevation = Elevation.PLATEAU
            else:
                self.elevation = Elevation.HIGHLANDS

    def elevation_color(self) -> int:
        return int(self.elevation)

    def set_vegetation(self, colors: Iterable[int]) -> None:
        """Take the most frequent vegetation colour, empty samples included."""
        counts = Counter(colors)
        self.vegetation = _most_common(counts) if counts else Vegetation.NONE

    def vegetation_color(self) -> int:
        return int(self.vegetation)

    def set_soil(self, colors: Iterable[int]) -> None:
        """Take the most frequent soil colour, empty samples included."""
        counts = Counter(colors)
        self.soil = _most_common(counts) if counts else Soil.NONE

    def soil_color(self) -> int:
        return int(self.soil)

    def write(self, stream: TextIO) -> None:
        """Write the province record; water provinces write nothing."""
        if self.water:
            return
        stream.write(f"color: {self.color}\n")
        stream.write(f"koppen: {int(self.koppen)}\n")
        stream.write(f"elevation: {int(self.elevation)}\n")
        stream.write(f"vegetation: {int(self.vegetation)}\n")
        stream.write(f"soil: {int(self.soil)}\n")
        stream.write("\n")

    def add_neighbor(self, neighbor: "Province") -> None:
        self.neighbors.add(neighbor)

    def add_outline_point(self, neighbor: "Province", x: int, y: int) -> None:
        """Record that pixel (x, y) of this province borders ``neighbor``."""
        self.outline.setdefault(neighbor, set()).add((x, y))

    def add_river(self, neighbor: "Province", size: int) -> None:
        self.rivers[neighbor] = size

    def river_color(self, x: int, y: int) -> int:
        """River size of the border the pixel lies on, or white if none."""
        for neighbor, pixels in self.outline.items():
            if (x, y) in pixels and neighbor in self.rivers:
                return self.rivers[neighbor]
        return WHITE

    def _border_elevation(self, base_image: Image, border: set[tuple[int, int]]) -> float:
        total = 0
        samples = len(border)
        for px, py in border:
            for i in (-1, 0, 1):
                for j in (-1, 0, 1):
                    if i == 0 and j == 0:
                        continue
                    nx, ny = px + i, py + j
                    if not (0 <= nx < base_image.width and 0 <= ny < base_image.height):
                        continue
                    around = base_image[nx, ny]
                    if not color_is_water(around):
                        total += sum(to_rgb(around))
                        samples += 1
            center = base_image[px, py]
            if color_is_water(center):
                total += self.average_elevation
            else:
                total += sum(to_rgb(center))
        return total / samples

    def impassable_neighbors(self, base_image: Image) -> list["Province"]:
        """Land neighbours whose shared border is too steep to cross."""
        impassable: list[Province] = []
        if self.water:
            return impassable
        for neighbor in self.neighbors:
            if neighbor.water:
                continue
            own = self._border_elevation(base_image, self.outline[neighbor])
            theirs = self._border_elevation(base_image, neighbor.outline[self])
            difference = abs(own - theirs)
            if (
                difference > self.average_elevation / 15.0 + 4
                or difference > neighbor.average_elevation / 15.0 + 4
            ):
                impassable.append(neighbor)
                continue
            if (
                own > self.average_elevation * 1.2 + 25
                or theirs > neighbor.average_elevation * 1.2 + 25
            ):
                impassable.append(neighbor)
        return impassable