# provincegen

Tools for turning a hand-painted world map into the data a grand-strategy game
needs: randomly grown provinces, per-province climate, elevation, vegetation
and soil, impassable borders, rivers, and typed sea tiles.

All images are read and written as 8-bit RGB PNG files (through Pillow).

## Installation

```
pip install .
```

For running the test suite:

```
pip install ".[test]"
pytest
```

## Input maps

The commands work on an images directory (`images` by default). The base map,
`map.png`, uses these colours:

| Colour                     | Meaning                                   |
|----------------------------|-------------------------------------------|
| `#00FFFF`                  | ocean                                     |
| `#FF00FF`                  | lake                                      |
| pure blue (`r = g = 0`)    | river; the blue value is the river size   |
| anything else              | land; `r+g+b` is its elevation            |

The province data step additionally reads `koppen.png`, `elevation.png`,
`vegetation.png` and `soil.png` from the same directory, each the same size as
the base map. Black pixels in these layers count as "no data"; the nearest
non-black pixel close by is used instead.

## Workflow

Run the three commands in order. Progress is reported through `logging` at
INFO level.

### 1. Grow provinces

```
provincegen-provinces [--input images/map.png] [--output images/write_map.png] [--seed N]
```

Seeds a province roughly every 13 pixels, grows them over land, then rivers,
then open water, merges provinces that came out too small, and writes the
result, one random colour per province, to the output image. Ocean and lake
pixels are left white. `--seed` makes the run reproducible.

### 2. Province data

```
provincegen-province-files [--images images] [--output .]
```

Reads `write_map.png`, `map.png` and the data layers from the images
directory and writes into the output directory:

- `provinces.txt` – colour, Köppen climate, elevation class, vegetation and
  soil of every land province (all as integer colours);
- `koppen_generated.png`, `elevation_generated.png`,
  `vegetation_generated.png`, `soil_generated.png` – each province painted in
  its dominant class;
- `impassable_crossings.txt` and `impassable_crossings.png` – borders between
  land provinces too steep to cross;
- `river_tiles.txt`, `rivers.txt` and `rivers_generated.png` – river tiles
  and the river size between neighbouring provinces.

Note that this step also rewrites `write_map.png` in the images directory:
river pixels along province borders are carved out into river tiles with new
colours.

### 3. Sea tiles

```
provincegen-sea-tiles [--images images] [--output sea_tiles.txt] [--seed N]
```

Splits the water of the base map into sea tiles (one per connected lake, and
ocean tiles grown from seeds about every 100 pixels), paints them over the
white pixels of `write_map.png`, and writes the output file with one
`Color:`/`Type:` pair per tile. Types are coast, lake, inland sea, or a wind
belt (polar, westerly, north-easterly, south-easterly) chosen by the tile's
average latitude; see `provincegen.sea_types.SeaTileType`.

## Library use

The modules are importable on their own:

- `provincegen.image` – `Image` (pixels addressed as `img[x, y]`, colours as
  `0xRRGGBB` integers), `from_rgb`, `to_rgb`;
- `provincegen.map_generator` – `generate_provinces` and its steps;
- `provincegen.province` – `Province` and the `Koppen`, `Elevation`,
  `Vegetation` and `Soil` colour enums;
- `provincegen.province_files` – `generate_province_files` and its steps;
- `provincegen.sea_tiles` and `provincegen.sea_types` – `generate_tiles`,
  `gen_types`, `fix_sea_tile_file`.

```python
from provincegen.image import Image, from_rgb, to_rgb
from provincegen.province import Province

img = Image.load("images/map.png")
print(to_rgb(img[10, 20]))

p = Province(from_rgb(12, 34, 56), False)
p.set_koppen([from_rgb(0, 0, 255)] * 3)
print(hex(p.koppen_color()))
```

Random steps take an explicit `rng` (a `random.Random`), so runs can be made
reproducible by seeding it.

## Limitations

The package only produces files; it has no viewer or editor for the maps.
All pixel work is done in pure Python, so large maps take a long time.