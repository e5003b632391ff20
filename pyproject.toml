[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "packman"
version = "0.1.0"
description = "Script-driven copying of files between VPK archives, directories and in-memory stores"
requires-python = ">=3.10"
dependencies = []
keywords = ["vpk", "archive", "packaging", "script"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Console",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Archiving :: Packaging",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
packman = "packman.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["packman"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
