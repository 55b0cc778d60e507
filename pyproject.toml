[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "smcesim"
version = "0.1.0"
description = "An in-process model of a virtual microcontroller board: pins, UARTs, frame-buffers, board devices and sketch build preparation"
requires-python = ">=3.10"
dependencies = []
keywords = ["arduino", "emulation", "virtual board", "gpio", "uart", "framebuffer"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Operating System :: OS Independent",
    "Topic :: Software Development :: Embedded Systems",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["smcesim"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
