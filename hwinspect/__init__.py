"""Read host hardware (memory, caches, topology, NICs, PCI) from sysfs and procfs."""

__version__ = "0.1.0"