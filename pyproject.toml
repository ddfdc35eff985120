[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "haproxy-native"
version = "0.1.0"
description = "Client for the HAProxy runtime API over its UNIX stats socket"
requires-python = ">=3.10"
dependencies = []
keywords = ["haproxy", "runtime-api", "load-balancer", "stats", "stick-tables"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: System Administrators",
    "Intended Audience :: Developers",
    "Operating System :: POSIX",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Systems Administration",
    "Topic :: System :: Networking",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["haproxy_native"]

[tool.pytest.ini_options]
addopts = "-ra"
