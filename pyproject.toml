[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "smvcan"
version = "0.1.0"
description = "CAN bus messaging for a vehicle network: identifier layout, double payloads, an SJA1000 controller model, SocketCAN transport and signal helpers"
requires-python = ">=3.10"
dependencies = []
keywords = ["can", "canbus", "sja1000", "socketcan", "vehicle", "telemetry", "kalman"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Software Development :: Embedded Systems :: Controller Area Network (CAN)",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["smvcan"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
strict = true
