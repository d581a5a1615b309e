[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "marsupial"
version = "0.1.0"
description = "Cost terms for optimizing the joint trajectory of a tethered ground and aerial vehicle"
requires-python = ">=3.10"
dependencies = []
keywords = ["robotics", "trajectory optimization", "tether", "catenary", "uav", "ugv", "cost function"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Science/Research",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Scientific/Engineering",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["marsupial"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
