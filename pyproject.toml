[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "leopard"
version = "0.1.0"
description = "Service building blocks: event bus, background WSGI server, random port picking, coloured logging with daily files, and an MQTT client"
requires-python = ">=3.10"
dependencies = [
    "paho-mqtt>=2.0",
]
keywords = ["eventbus", "logging", "mqtt", "wsgi", "port", "toolkit"]
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
    "Topic :: System :: Logging",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["leopard"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
