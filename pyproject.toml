[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "frenetpath"
version = "0.1.0"
description = "Frenet-frame path planning with cubic splines, free-space bounds and an iLQR solver"
requires-python = ">=3.10"
dependencies = [
    "numpy",
]
keywords = ["path planning", "frenet", "ilqr", "spline", "motion planning", "optimization"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Science/Research",
    "Intended Audience :: Developers",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Operating System :: OS Independent",
    "Topic :: Scientific/Engineering :: Mathematics",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["frenetpath"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
