"""AI Media Enhancer - desktop front-end for generative photo and video enhancement."""

__version__ = "1.0.0"
