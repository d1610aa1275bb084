"""
pilreg - container registry pillaging tool

Enumerates the images of one or more registries without prior knowledge of
their repositories or tags, collecting manifests and configs and optionally
exporting full image filesystems.
"""

__version__ = "1.0.0"

from .core.enumerator import ImageEnumerator
from .core.storage import StorageOptions, StoragePipeline, store_image
from .models.image_data import ImageData
from .utils.registry import CraneClient, RegistryOptions

__all__ = [
    "ImageEnumerator",
    "StorageOptions",
    "StoragePipeline",
    "store_image",
    "ImageData",
    "CraneClient",
    "RegistryOptions",
]
