"""Book configuration and chapter preprocessing for markdown books."""

__version__ = "0.1.0"