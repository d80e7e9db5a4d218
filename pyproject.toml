[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "tezdeleg"
version = "0.1.0"
description = "Use cases for a Tezos delegation service: paginated delegation, operation and reward queries and TzKT delegation sync"
requires-python = ">=3.10"
dependencies = []
keywords = ["tezos", "delegation", "staking", "tzkt", "pagination", "gelf"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Internet :: WWW/HTTP :: Dynamic Content",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["tezdeleg"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
