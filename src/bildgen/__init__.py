"""BildGenerator - prompt-to-image gateway with local image storage."""

__version__ = "0.1.0"
