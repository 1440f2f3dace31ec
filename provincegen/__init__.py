"""Province, river and sea-tile map generation from painted base maps."""

__version__ = "0.1.0"
__all__ = [
    "image",
    "mapgen_utils",
    "map_generator",
    "province",
    "province_files",
    "sea_tiles",
    "sea_types",
]