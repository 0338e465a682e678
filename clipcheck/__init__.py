"""ClipCheck: authenticity analysis pipeline for online video."""

__version__ = "0.1.0"
