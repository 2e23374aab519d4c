"""Photo classification and tagging pipeline."""

__version__ = "0.1.0"
