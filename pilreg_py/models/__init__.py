"""Data models for pilreg."""

from .image_data import ImageData, results_to_json

__all__ = [
    "ImageData",
    "results_to_json",
]
