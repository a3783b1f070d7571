[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "rclink"
version = "0.1.0"
description = "Framed register-protocol links (UTRC/UTCC) over TCP, UDP and serial transports"
requires-python = ">=3.10"
dependencies = [
    "pyserial",
]
keywords = ["robotics", "serial", "crc16", "modbus-crc", "protocol", "servo", "tcp", "udp"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Operating System :: POSIX :: Linux",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Software Development :: Embedded Systems",
    "Topic :: System :: Networking",
    "Topic :: Terminals :: Serial",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["rclink"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
