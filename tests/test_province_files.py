import random

import pytest

from provincegen.image import Image, from_rgb
from provincegen.province import Elevation, Koppen, Province, Soil, Vegetation
from provincegen.province_files import (
    draw_impassable_map,
    draw_map,
    draw_river_map,
    find_entire_river,
    find_river,
    generate_impassable_crossings,
    generate_neighbors,
    generate_province_files,
    generate_rivers,
    load_elevation,
    load_koppen,
    load_provinces,
    load_soil,
    load_vegetation,
    main,
    river_between,
    save_provinces,
    search_spiral,
    write_rivers,
)

A = 0x112233
B = 0x445566
RIVER = from_rgb(0, 0, 100)
GRAY = from_rgb(50, 50, 50)


def make_image(path, rows):
    """Build and save an image from rows of colours (rows[y][x])."""
    height = len(rows)
    width = len(rows[0])
    image = Image(path, width, height)
    for y, row in enumerate(rows):
        for x, color in enumerate(row):
            image[x, y] = color
    image.write()
    return image


def fill(path, width, height, color):
    return make_image(path, [[color] * width for _ in range(height)])


def two_provinces(tmp_path, height=3):
    """A province image with column 0 in A and column 1 in B, both land."""
    province_image = make_image(tmp_path / "write_map.png", [[A, B]] * height)
    fill(tmp_path / "map.png", 2, height, GRAY)
    provinces = load_provinces(tmp_path / "map.png", province_image)
    generate_neighbors(province_image, provinces)
    return province_image, provinces


def test_search_spiral_finds_pixel_above(tmp_path):
    image = fill(tmp_path / "s.png", 3, 3, 0)
    image[1, 0] = Koppen.AF
    assert search_spiral(image, 1, 1, lambda c: c != 0) == Koppen.AF


def test_search_spiral_falls_back_to_origin(tmp_path):
    image = fill(tmp_path / "s.png", 3, 3, 0)
    image[1, 1] = GRAY
    assert search_spiral(image, 1, 1, lambda c: c == Koppen.EF) == GRAY


def test_search_spiral_respects_radius(tmp_path):
    image = fill(tmp_path / "s.png", 9, 1, 0)
    image[8, 0] = Koppen.ET
    assert search_spiral(image, 0, 0, lambda c: c != 0, 3) == 0
    assert search_spiral(image, 0, 0, lambda c: c != 0, 10) == Koppen.ET


def test_load_provinces_marks_water(tmp_path):
    province_image = make_image(tmp_path / "write_map.png", [[A, B, A]])
    make_image(tmp_path / "map.png", [[GRAY, 0x00FFFF, GRAY]])
    provinces = load_provinces(tmp_path / "map.png", province_image)
    assert set(provinces) == {A, B}
    assert provinces[A].water is False
    assert provinces[B].water is True
    assert provinces[A].color == A


def test_generate_neighbors_records_outlines(tmp_path):
    _, provinces = two_provinces(tmp_path, height=1)
    a, b = provinces[A], provinces[B]
    assert a.neighbors == {b}
    assert b.neighbors == {a}
    assert a.outline[b] == {(0, 0)}
    assert b.outline[a] == {(1, 0)}


def test_generate_neighbors_skips_water(tmp_path):
    province_image = make_image(tmp_path / "write_map.png", [[A, B]])
    make_image(tmp_path / "map.png", [[GRAY, 0xFF00FF]])
    provinces = load_provinces(tmp_path / "map.png", province_image)
    generate_neighbors(province_image, provinces)
    assert provinces[A].neighbors == set()
    assert provinces[A].outline == {}


def test_generate_neighbors_unknown_color_raises(tmp_path):
    province_image = make_image(tmp_path / "write_map.png", [[A, B]])
    provinces = {A: Province(A, False)}
    with pytest.raises(KeyError):
        generate_neighbors(province_image, provinces)


def test_load_koppen_majority_and_spiral(tmp_path):
    province_image, provinces = two_provinces(tmp_path)
    make_image(tmp_path / "koppen.png", [[Koppen.CSA, Koppen.DFB], [0, Koppen.DFB], [Koppen.CSA, Koppen.DFB]])
    load_koppen(province_image, provinces, tmp_path / "koppen.png")
    assert provinces[A].koppen == Koppen.CSA
    assert provinces[B].koppen == Koppen.DFB


def test_load_koppen_without_data_is_none(tmp_path):
    province_image, provinces = two_provinces(tmp_path)
    fill(tmp_path / "koppen.png", 2, 3, 0)
    load_koppen(province_image, provinces, tmp_path / "koppen.png")
    assert provinces[A].koppen == Koppen.NONE


def test_load_koppen_missing_province_raises(tmp_path):
    province_image = make_image(tmp_path / "write_map.png", [[A, B]])
    fill(tmp_path / "koppen.png", 2, 1, Koppen.AF)
    with pytest.raises(KeyError):
        load_koppen(province_image, {A: Province(A, False)}, tmp_path / "koppen.png")


def test_load_elevation_flat(tmp_path):
    province_image, provinces = two_provinces(tmp_path)
    fill(tmp_path / "elevation.png", 2, 3, from_rgb(10, 10, 10))
    load_elevation(province_image, provinces, tmp_path / "elevation.png")
    assert provinces[A].elevation == Elevation.FLATLAND
    assert provinces[B].elevation == Elevation.FLATLAND


def test_load_vegetation_and_soil(tmp_path):
    province_image, provinces = two_provinces(tmp_path)
    fill(tmp_path / "veg.png", 2, 3, Vegetation.STEPPE)
    fill(tmp_path / "soil.png", 2, 3, Soil.PODZOLS)
    load_vegetation(province_image, provinces, tmp_path / "veg.png")
    load_soil(province_image, provinces, tmp_path / "soil.png")
    assert provinces[A].vegetation == Vegetation.STEPPE
    assert provinces[B].soil == Soil.PODZOLS


def test_layers_leave_water_untouched(tmp_path):
    province_image = make_image(tmp_path / "write_map.png", [[A, B]])
    make_image(tmp_path / "map.png", [[GRAY, 0x00FFFF]])
    provinces = load_provinces(tmp_path / "map.png", province_image)
    fill(tmp_path / "soil.png", 2, 1, Soil.VERTISOLS)
    load_soil(province_image, provinces, tmp_path / "soil.png")
    assert provinces[A].soil == Soil.VERTISOLS
    assert provinces[B].soil == Soil.NONE


def test_draw_map_paints_province_colors(tmp_path):
    province_image, provinces = two_provinces(tmp_path)
    provinces[A].koppen = Koppen.BWH
    del provinces[B]
    draw_map(province_image, provinces, tmp_path / "out.png", Province.koppen_color)
    loaded = Image.load(tmp_path / "out.png")
    assert loaded[0, 0] == Koppen.BWH
    assert loaded[1, 2] == 0xFFFFFF


def test_save_provinces_skips_water(tmp_path):
    land = Province(A, False)
    water = Province(B, True)
    path = tmp_path / "provinces.txt"
    save_provinces({A: land, B: water}, path)
    text = path.read_text()
    assert text.startswith(f"color: {A}\n")
    assert text.count("color:") == 1
    assert f"color: {B}" not in text


def test_river_between_and_find_river(tmp_path):
    province_image, provinces = two_provinces(tmp_path)
    river = fill(tmp_path / "river.png", 2, 3, RIVER)
    a, b = provinces[A], provinces[B]
    assert river_between(river, a, b) is True
    points = find_river(province_image, river, a, b)
    assert points == {(x, y) for x in range(2) for y in range(3)}


def test_river_between_false_without_river(tmp_path):
    _, provinces = two_provinces(tmp_path)
    dry = fill(tmp_path / "dry.png", 2, 3, GRAY)
    assert river_between(dry, provinces[A], provinces[B]) is False


def test_find_entire_river_includes_banks(tmp_path):
    image = make_image(
        tmp_path / "r.png",
        [[GRAY, RIVER, GRAY, GRAY, GRAY],
         [GRAY, RIVER, GRAY, GRAY, GRAY],
         [GRAY, GRAY, GRAY, GRAY, GRAY]],
    )
    points = find_entire_river(image, 1, 0)
    expected = {(x, y) for x in range(3) for y in range(3)}
    assert points == expected
    assert (4, 0) not in points


def test_generate_rivers(tmp_path):
    province_image, provinces = two_provinces(tmp_path)
    fill(tmp_path / "river.png", 2, 3, RIVER)
    tiles = tmp_path / "river_tiles.txt"
    colors = generate_rivers(province_image, provinces, tmp_path / "river.png", tiles, random.Random(1))
    assert len(colors) == 1
    new_color, size = colors[0]
    assert size == 100
    assert new_color not in (A, B)
    assert provinces[new_color].water is True
    assert provinces[A].rivers[provinces[B]] == 100
    assert provinces[B].rivers[provinces[A]] == 100
    assert tiles.read_text() == f"River Color: {new_color}\nRiver Size: 100\n"
    reloaded = Image.load(tmp_path / "write_map.png")
    assert {reloaded[x, y] for x in range(2) for y in range(3)} == {new_color}


def test_write_rivers_once_per_pair(tmp_path):
    a, b = Province(A, False), Province(B, False)
    a.add_river(b, 7)
    b.add_river(a, 7)
    path = tmp_path / "rivers.txt"
    write_rivers({A: a, B: b}, path)
    assert path.read_text() == f"Province Color: {A}\nNeighbor Color: {B}\nRiver Size: 7\n"


def test_draw_river_map(tmp_path):
    province_image, provinces = two_provinces(tmp_path)
    provinces[A].add_river(provinces[B], 7)
    draw_river_map(province_image, provinces, tmp_path / "rivers.png")
    loaded = Image.load(tmp_path / "rivers.png")
    assert loaded[0, 1] == 7
    assert loaded[1, 1] == 0xFFFFFF


def test_draw_impassable_map(tmp_path):
    _, provinces = two_provinces(tmp_path, height=1)
    a, b = provinces[A], provinces[B]
    draw_impassable_map([(a, b), (b, a)], 3, 1, tmp_path / "imp.png")
    loaded = Image.load(tmp_path / "imp.png")
    assert loaded[0, 0] == 0xFF0000
    assert loaded[1, 0] == 0xFF0000
    assert loaded[2, 0] == 0xFFFFFF


def test_generate_impassable_crossings_steep(tmp_path):
    _, provinces = two_provinces(tmp_path, height=1)
    base = make_image(tmp_path / "base.png", [[from_rgb(200, 200, 200), from_rgb(200, 200, 200)]])
    text_path = tmp_path / "imp.txt"
    pairs = generate_impassable_crossings(base, provinces, text_path, tmp_path / "imp.png")
    assert len(pairs) == 2
    assert text_path.read_text() == f"Province Color: {A}\nNeighbor Color: {B}\n"
    assert Image.load(tmp_path / "imp.png")[0, 0] == 0xFF0000


def test_generate_impassable_crossings_flat(tmp_path):
    _, provinces = two_provinces(tmp_path, height=1)
    base = make_image(tmp_path / "base.png", [[0, 0]])
    text_path = tmp_path / "imp.txt"
    pairs = generate_impassable_crossings(base, provinces, text_path, tmp_path / "imp.png")
    assert pairs == []
    assert text_path.read_text() == ""
    assert Image.load(tmp_path / "imp.png")[1, 0] == 0xFFFFFF


def _write_inputs(images):
    images.mkdir()
    make_image(images / "write_map.png", [[A, A, B, B]] * 4)
    fill(images / "map.png", 4, 4, GRAY)
    fill(images / "koppen.png", 4, 4, Koppen.AF)
    fill(images / "elevation.png", 4, 4, from_rgb(10, 10, 10))
    fill(images / "vegetation.png", 4, 4, Vegetation.DESERT)
    fill(images / "soil.png", 4, 4, Soil.LUVISOLS)


def test_generate_province_files(tmp_path):
    images = tmp_path / "images"
    _write_inputs(images)
    out = tmp_path / "out"
    out.mkdir()
    provinces = generate_province_files(images, out)
    assert set(provinces) == {A, B}
    assert provinces[A].koppen == Koppen.AF
    assert (out / "provinces.txt").read_text().count("color:") == 2
    assert (out / "river_tiles.txt").read_text() == ""
    assert (out / "rivers.txt").read_text() == ""
    assert Image.load(out / "soil_generated.png")[3, 3] == Soil.LUVISOLS


def test_main_runs_pipeline(tmp_path):
    images = tmp_path / "images"
    _write_inputs(images)
    out = tmp_path / "out"
    out.mkdir()
    assert main(["--images", str(images), "--output", str(out)]) == 0
    assert Image.load(out / "koppen_generated.png")[0, 0] == Koppen.AF