"""Core functionality for pilreg."""

from .enumerator import ImageEnumerator
from .storage import StorageOptions, StoragePipeline, secure_join, store_image

__all__ = [
    "ImageEnumerator",
    "StorageOptions",
    "StoragePipeline",
    "secure_join",
    "store_image",
]
