"""Notes demo service: the application packaged and migrated by shipwright."""

__version__ = "0.1.0"
