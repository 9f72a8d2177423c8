"""Building blocks for a CI runner that keeps pools of virtual machines."""

__version__ = "0.1.0"