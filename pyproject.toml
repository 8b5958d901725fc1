[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "hwinspect"
version = "0.1.0"
description = "Read host hardware (memory, CPU caches, NUMA topology, NICs, PCI devices) from sysfs and procfs, and unpack hardware snapshots"
requires-python = ">=3.10"
dependencies = [
    "pyyaml",
]
keywords = [
    "hardware",
    "sysfs",
    "procfs",
    "numa",
    "topology",
    "pci",
    "memory",
    "network",
    "snapshot",
]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Intended Audience :: System Administrators",
    "Operating System :: POSIX :: Linux",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Hardware",
    "Topic :: System :: Systems Administration",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["hwinspect"]

[tool.hatch.build.targets.sdist]
include = [
    "hwinspect",
    "tests",
    "README.md",
    "pyproject.toml",
]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP"]

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
warn_redundant_casts = true
