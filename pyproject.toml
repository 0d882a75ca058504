[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "mdshelf"
version = "0.1.0"
description = "Load, organise and prepare Markdown books described by a SUMMARY.md outline"
requires-python = ">=3.11"
keywords = ["markdown", "book", "summary", "documentation", "preprocessor"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Environment :: Console",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Text Processing :: Markup :: Markdown",
    "Topic :: Documentation",
]
dependencies = [
    "markdown-it-py",
    "tomli-w",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[project.scripts]
mdshelf = "mdshelf.cli:main"
mdshelf-nop = "mdshelf.nop:main"

[tool.hatch.build.targets.wheel]
packages = ["mdshelf"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py311"

[tool.mypy]
python_version = "3.11"
warn_unused_ignores = true
