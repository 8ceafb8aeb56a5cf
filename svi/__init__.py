"""svi: a small modal screen editor for terminals."""

__version__ = "0.1.0"
