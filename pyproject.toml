[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "apogeeopl"
version = "0.1.0"
description = "Pure-Python OPL3 FM chip emulator with a timed register-write queue, an Apogee-style timbre bank and a MIDI render loop"
requires-python = ">=3.10"
dependencies = []
keywords = ["opl3", "fm synthesis", "adlib", "emulator", "ymf262", "timbre bank"]
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
    "Topic :: Multimedia :: Sound/Audio :: Sound Synthesis",
    "Topic :: System :: Emulators",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["apogeeopl"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"
