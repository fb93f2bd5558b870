[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "onewire"
version = "0.4.0"
description = "Bit-banged 1-Wire bus master with device search, CRC-8 checks and a DS18B20 temperature sensor driver"
requires-python = ">=3.10"
dependencies = []
keywords = ["onewire", "1-wire", "1wire", "ds18b20", "embedded", "temperature"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Operating System :: OS Independent",
    "Topic :: Software Development :: Embedded Systems",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["onewire"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
