[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "provincegen"
version = "0.1.0"
description = "Generate province, river and sea-tile maps for strategy games from painted base maps"
requires-python = ">=3.10"
dependencies = [
    "pillow",
]
keywords = ["map", "province", "procedural", "strategy-game", "terrain", "sea-tiles"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Environment :: Console",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Games/Entertainment :: Simulation",
    "Topic :: Multimedia :: Graphics",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[project.scripts]
provincegen-provinces = "provincegen.map_generator:main"
provincegen-province-files = "provincegen.province_files:main"
provincegen-sea-tiles = "provincegen.sea_types:main"

[tool.hatch.build.targets.wheel]
packages = ["provincegen"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
