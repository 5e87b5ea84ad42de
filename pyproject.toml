[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "mobileglue"
version = "1.3.1"
description = "SHA digests, the opack encoding, NSKeyedArchiver plists and small containers in pure Python"
requires-python = ">=3.10"
dependencies = []
keywords = ["opack", "nskeyedarchiver", "plist", "sha1", "sha256", "serialization"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Software Development :: Libraries",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["mobileglue"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"
