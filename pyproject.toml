[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "toyc"
version = "0.1.0"
description = "A compiler for a small C-like toy language that emits x86-64 NASM assembly"
requires-python = ">=3.10"
dependencies = []
keywords = ["compiler", "toy-language", "x86-64", "nasm", "assembly"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Environment :: Console",
    "Intended Audience :: Developers",
    "Intended Audience :: Education",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Software Development :: Compilers",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
toyc = "toyc.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["toyc"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"
