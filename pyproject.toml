[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "bookpress"
version = "0.1.0"
description = "Book configuration and chapter preprocessing for markdown books"
requires-python = ">=3.11"
dependencies = []
keywords = ["markdown", "book", "documentation", "preprocessor", "configuration", "toml"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Operating System :: OS Independent",
    "Topic :: Text Processing :: Markup :: Markdown",
    "Topic :: Documentation",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["bookpress"]

[tool.pytest.ini_options]
addopts = "-ra"
