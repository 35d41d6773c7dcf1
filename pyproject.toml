[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "gamerpc"
version = "0.1.0"
description = "Protocol types, local state tracking and app registration for the Discord game RPC interface"
requires-python = ">=3.10"
dependencies = []
keywords = ["discord", "rpc", "game-sdk", "lobby", "overlay", "voice"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Operating System :: POSIX :: Linux",
    "Operating System :: MacOS",
    "Operating System :: Microsoft :: Windows",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Games/Entertainment",
    "Topic :: Software Development :: Libraries :: Python Modules",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["gamerpc"]

[tool.pytest.ini_options]
addopts = "-ra"
