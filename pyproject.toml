[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "padwake"
version = "0.1.0"
description = "Keep a Wayland session awake while a game controller is in use"
requires-python = ">=3.10"
dependencies = []
keywords = ["wayland", "idle-inhibit", "gamepad", "evdev", "screensaver"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Console",
    "Intended Audience :: End Users/Desktop",
    "Operating System :: POSIX :: Linux",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Desktop Environment",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
padwake = "padwake.monitor:main"

[tool.hatch.build.targets.wheel]
packages = ["padwake"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 88
target-version = "py310"

[tool.mypy]
python_version = "3.10"
strict = true
