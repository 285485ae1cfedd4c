[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "photoferry"
version = "0.1.0"
description = "Building blocks for moving photo and video libraries into a self-hosted photo server: asset models, metadata readers, sidecars, filters and event journals."
requires-python = ">=3.10"
dependencies = [
    "paramiko",
]
keywords = [
    "photos",
    "exif",
    "xmp",
    "metadata",
    "quicktime",
    "takeout",
    "docker",
]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Console",
    "Intended Audience :: End Users/Desktop",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Multimedia :: Graphics",
    "Topic :: Multimedia :: Video",
    "Topic :: Utilities",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[project.scripts]
photoferry-read = "photoferry.reader:main"

[tool.hatch.build.targets.wheel]
packages = ["photoferry"]

[tool.hatch.build.targets.sdist]
include = [
    "photoferry",
    "tests",
]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP"]

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
ignore_missing_imports = true
