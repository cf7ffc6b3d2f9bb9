[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "randbeacon"
version = "0.1.0"
description = "Building blocks for a chained randomness beacon: beacons, chain info, round timing, storage, partial-signature caching, ticking and syncing."
requires-python = ">=3.10"
dependencies = []
keywords = ["randomness", "beacon", "chain", "round", "distributed"]
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
    "Topic :: Security :: Cryptography",
    "Topic :: Software Development :: Libraries :: Python Modules",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["randbeacon"]

[tool.pytest.ini_options]
addopts = "-ra"
