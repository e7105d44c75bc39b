[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "servicetemplate"
version = "0.1.0"
description = "A layered JSON:API WSGI service for users and accounts, with cursor pagination, OpenAPI request validation and SQL storage."
requires-python = ">=3.10"
keywords = ["wsgi", "json-api", "openapi", "rest", "pagination", "service"]
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
    "Topic :: Internet :: WWW/HTTP :: WSGI :: Application",
]
dependencies = [
    "werkzeug",
    "pyyaml",
    "jsonschema",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["servicetemplate"]

[tool.pytest.ini_options]
addopts = "-ra"
testpaths = ["tests"]
