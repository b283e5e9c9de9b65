[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "forcectl"
version = "0.1.0"
description = "Joint-level PVT control, low-pass filtering, rotation math and inverse kinematics for serial robot arms"
requires-python = ">=3.10"
dependencies = [
    "numpy",
]
keywords = ["robotics", "control", "kinematics", "inverse-kinematics", "pd-control", "urdf"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Science/Research",
    "Intended Audience :: Developers",
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
packages = ["forcectl"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
