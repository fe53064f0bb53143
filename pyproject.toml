[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "remotefs"
version = "0.1.0"
description = "Building blocks for a remote filesystem: async HTTP storage client, I/O buffers, file attributes and server configuration tooling"
requires-python = ">=3.11"
keywords = ["filesystem", "remote", "storage", "http", "client", "configuration", "logging"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Environment :: Console",
    "Framework :: AsyncIO",
    "Intended Audience :: Developers",
    "Intended Audience :: System Administrators",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Filesystems",
    "Typing :: Typed",
]
dependencies = [
    "httpx>=0.25",
    "tomli-w>=1.0",
]

[project.optional-dependencies]
test = [
    "pytest>=7.4",
    "pytest-asyncio>=0.23",
    "respx>=0.20",
]

[project.scripts]
remotefs-server = "remotefs.app:main"

[tool.hatch.build.targets.wheel]
packages = ["remotefs"]

[tool.hatch.build.targets.sdist]
include = ["remotefs", "tests", "README.md"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py311"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP"]

[tool.mypy]
python_version = "3.11"
warn_unused_ignores = true
warn_redundant_casts = true
check_untyped_defs = true
