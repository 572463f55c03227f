[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "targeting-engine"
version = "0.1.0"
description = "Ad campaign targeting engine served as a WSGI application"
requires-python = ">=3.10"
dependencies = []
keywords = ["advertising", "targeting", "campaigns", "wsgi", "delivery"]
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
    "Topic :: Internet :: WWW/HTTP :: WSGI :: Application",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
targeting-engine = "targeting_engine.app:main"

[tool.hatch.build.targets.wheel]
packages = ["targeting_engine"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
