[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "myst"
version = "0.1.0"
description = "Metadata query layer for time series: query parsing, filter trees, epoch bitmaps, result grouping and ingest record decoding."
requires-python = ">=3.10"
dependencies = []
keywords = ["timeseries", "metadata", "tsdb", "query", "bitmap", "roaring", "xxhash"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Database",
    "Typing :: Typed",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["myst"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"
