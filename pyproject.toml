[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "looplace"
version = "0.1.6"
description = "Psychomotor vigilance (PVT) and 2-back working-memory task engines with metrics"
requires-python = ">=3.10"
dependencies = []
keywords = ["pvt", "n-back", "vigilance", "working memory", "reaction time", "signal detection"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Science/Research",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Operating System :: OS Independent",
    "Topic :: Scientific/Engineering :: Medical Science Apps.",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["looplace"]

[tool.pytest.ini_options]
addopts = "-ra"
