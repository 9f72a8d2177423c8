[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "runnerpool"
version = "0.1.0"
description = "Building blocks for a CI runner that keeps pools of virtual machines: pool sizing strategies, Nomad job specs, VMware Fusion helpers, settings encoding, JSON response helpers and build matching."
requires-python = ">=3.10"
dependencies = []
keywords = [
    "ci",
    "runner",
    "virtual-machines",
    "pool",
    "nomad",
    "vmware-fusion",
    "autoscaling",
]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Intended Audience :: System Administrators",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Distributed Computing",
    "Topic :: Software Development :: Build Tools",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["runnerpool"]

[tool.pytest.ini_options]
addopts = "-ra"
