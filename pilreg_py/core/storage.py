"""Result storage and image export.

Layout under the results directory::

    <results>/<registry>/<repository>/<tag>/
        manifest.json
        config.json
        filesystem.tar   (only with store_images)
        errors.log       (only when the record has an error)
"""

import posixpath
import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Optional

from ..models.image_data import ImageData
from ..utils.logging import get_logger
from ..utils.registry import RegistryClient, RegistryError

logger = get_logger(__name__)

DEFAULT_WORKERS = 8

MANIFEST_FILE = "manifest.json"
CONFIG_FILE = "config.json"
ERRORS_FILE = "errors.log"
FILESYSTEM_FILE = "filesystem.tar"


@dataclass(frozen=True)
class StorageOptions:
    """Where and how results are stored."""
    results_path: str
    cache_path: Optional[str] = None
    store_images: bool = False
    client: Optional[RegistryClient] = None


def secure_join(*segments: str) -> str:
    """
    Join path segments so none of them can climb out of the result.

    Each segment is cleaned as if it were an absolute path, so ``..``
    components stop at its own root before the segments are concatenated.
    """
    parts = []
    for segment in segments:
        cleaned = posixpath.normpath("/" + segment).lstrip("/")
        if cleaned:
            parts.append(cleaned)
    return posixpath.join(*parts) if parts else ""


def image_path(image: ImageData, results_path: str) -> Path:
    """Directory holding the stored results of one image."""
    return Path(results_path) / secure_join(image.registry, image.repository, image.tag)


def _write_text(path: Path, content: str) -> None:
    try:
        with open(path, "w", encoding="utf-8", newline="") as f:
            f.write(content)
    except OSError as e:
        logger.error(f"Error writing {path}: {e}")


def store_image(image: ImageData, options: StorageOptions) -> Optional[str]:
    """
    Write an image's results to disk and optionally export its filesystem.

    Export failures are appended to ``image.error``. Storing the same record
    twice produces the same files.

    Args:
        image: Result record to store
        options: Storage options

    Returns:
        The record's final error, or None
    """
    logger.debug(f"Storing results for image: {image.reference}")

    output_dir = image_path(image, options.results_path)
    try:
        output_dir.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        logger.error(f"Error making storage path {output_dir}: {e}")
        image.add_error(str(e))
        return image.error

    if image.manifest:
        _write_text(output_dir / MANIFEST_FILE, image.manifest)

    if image.config:
        _write_text(output_dir / CONFIG_FILE, image.config)

    if options.store_images and image.error is None:
        if options.client is None:
            raise ValueError("store_images requires a registry client")

        fs_path = output_dir / FILESYSTEM_FILE
        try:
            options.client.pull_and_save(
                image.reference, str(fs_path), cache_path=options.cache_path
            )
            logger.debug(f"Saved filesystem for {image.reference} to {fs_path}")
        except RegistryError as e:
            logger.warn_verbose(f"Error saving tarball {fs_path}: {e}")
            fs_path.unlink(missing_ok=True)
            image.add_error(str(e))

    if image.error is not None:
        _write_text(output_dir / ERRORS_FILE, image.error)

    return image.error


class StoragePipeline:
    """
    Store a stream of results with a fixed number of workers.

    Dispatch blocks while all workers are busy, so image pulls never run
    more than ``workers`` at a time regardless of how fast the stream is.
    """

    def __init__(self, options: StorageOptions, workers: int = DEFAULT_WORKERS):
        """
        Initialize pipeline.

        Args:
            options: Storage options passed to every store
            workers: Maximum number of concurrent stores
        """
        if workers < 1:
            raise ValueError(f"workers must be at least 1, got {workers}")
        self.options = options
        self.workers = workers
        self._slots = threading.BoundedSemaphore(workers)

    def _store(self, image: ImageData) -> ImageData:
        try:
            store_image(image, self.options)
        finally:
            self._slots.release()
        return image

    def run(self, images: Iterable[ImageData]) -> List[ImageData]:
        """
        Store every record of a stream.

        Args:
            images: Result stream

        Returns:
            The stored records, with any export errors appended
        """
        futures = []
        with ThreadPoolExecutor(
            max_workers=self.workers, thread_name_prefix="pilreg-store"
        ) as executor:
            for image in images:
                self._slots.acquire()
                futures.append(executor.submit(self._store, image))

        return [future.result() for future in futures]
