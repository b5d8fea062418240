[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "lzhkit"
version = "0.4.0"
description = "Decoders for PMarc -pm1-/-pm2- compressed data, plus member filtering, listing, testing and extraction helpers for LZH archives"
requires-python = ">=3.10"
dependencies = []
keywords = ["lzh", "lha", "pmarc", "pma", "archive", "decompression", "msx"]
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
    "Topic :: System :: Archiving :: Compression",
    "Topic :: System :: Archiving",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["lzhkit"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 88
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
