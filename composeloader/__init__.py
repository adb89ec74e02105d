"""Building blocks for parsing, normalizing and resolving Compose application model files."""

__version__ = "0.1.0"