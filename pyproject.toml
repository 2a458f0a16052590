[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "tablemeta"
version = "0.1.0"
description = "Table metadata stores with caching and unique-constraint dictionaries for warehouse tables"
requires-python = ">=3.10"
keywords = ["metadata", "bigquery", "schema", "cache", "unique constraints"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Database",
]
dependencies = [
    "cachetools",
    "msgpack",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["tablemeta"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
