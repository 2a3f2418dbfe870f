"""Season ticket allocation service."""

__version__ = "0.4.0"
