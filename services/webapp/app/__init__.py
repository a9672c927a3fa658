"""Marketing data upload console webapp."""

__version__ = "0.1.0"
