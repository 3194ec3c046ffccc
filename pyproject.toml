[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "sigilc"
version = "0.1.0"
description = "Middle passes for the Sigil language: algebra registration, alias rewriting, sigil desugaring and loop analysis"
requires-python = ">=3.10"
dependencies = []
keywords = [
    "compiler",
    "desugaring",
    "operators",
    "precedence",
    "algebra",
    "traits",
    "loop-analysis",
]
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
    "Topic :: Software Development :: Compilers",
    "Typing :: Typed",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["sigilc"]

[tool.hatch.build.targets.sdist]
include = ["sigilc", "tests", "pyproject.toml", "README.md"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP", "SIM"]

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
warn_redundant_casts = true
check_untyped_defs = true
