[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "oapigen"
version = "0.1.0"
description = "OpenAPI code generator configuration handling, with reference pet store and things WSGI services"
requires-python = ">=3.10"
dependencies = [
    "pyyaml",
]
keywords = ["openapi", "swagger", "code generation", "configuration", "wsgi", "petstore"]
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
    "Topic :: Software Development :: Code Generators",
    "Topic :: Internet :: WWW/HTTP :: WSGI :: Application",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[project.scripts]
oapigen-petstore = "oapigen.webapp:main"

[tool.hatch.build.targets.wheel]
packages = ["oapigen"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
