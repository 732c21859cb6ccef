[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "rebel"
version = "0.1.0"
description = "A small word-based interpreter running on a flat, word-addressed memory"
requires-python = ">=3.10"
keywords = ["interpreter", "language", "vm", "parser", "bytecode"]
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
    "Topic :: Software Development :: Interpreters",
]
dependencies = []

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["rebel"]

[tool.pytest.ini_options]
addopts = "-ra"
