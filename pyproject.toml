[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "geckokern"
version = "0.1.0"
description = "Simulated hobby-kernel subsystems: block allocator, paging, users, Multiboot2 parsing, scheduling, printf and a VGA text terminal"
requires-python = ">=3.10"
dependencies = []
keywords = [
    "kernel",
    "operating-system",
    "paging",
    "multiboot2",
    "printf",
    "vga",
    "simulation",
]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Intended Audience :: Education",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Operating System",
    "Topic :: Education",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["geckokern"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP"]
