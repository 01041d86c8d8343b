[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "minibackend"
version = "0.0.1"
description = "A small JSON HTTP backend with a path router, TOML configuration and multipart item uploads"
requires-python = ">=3.11"
dependencies = []
keywords = ["http", "server", "router", "json", "multipart", "backend"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Environment :: Web Environment",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Internet :: WWW/HTTP :: HTTP Servers",
    "Typing :: Typed",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
minibackend = "minibackend.server:main"

[tool.hatch.build.targets.wheel]
packages = ["minibackend"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py311"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP"]
