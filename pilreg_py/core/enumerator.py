"""Registry enumeration.

Walks registries -> repositories -> tags -> images. Every level fans out one
task per child and all results are funnelled into a single queue, which the
public ``enum_*`` iterators drain. A listing failure ends only its own
subtree and is reported as one error record in its place.
"""

import queue
import threading
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Callable, Iterator, Optional, Sequence

from ..models.image_data import ImageData
from ..utils.logging import get_logger
from ..utils.registry import RegistryClient, RegistryError

logger = get_logger(__name__)

Emit = Callable[[ImageData], None]

NO_REGISTRIES_ERROR = "No registries supplied"

# Marks the end of a result stream
_DONE = object()


class ImageEnumerator:
    """
    Enumerate images and collect their manifests and configs.

    Repository and tag lists are optional at every level: when omitted they
    are discovered through the registry's catalog and tags APIs. There is no
    ordering between results and no limit on the number of concurrent
    lookups.
    """

    def __init__(self, client: RegistryClient):
        """
        Initialize enumerator.

        Args:
            client: Registry access used for every lookup
        """
        self.client = client

    def enum_image(self, registry: str, repository: str, tag: str) -> ImageData:
        """
        Fetch the manifest and config of a single image.

        A manifest failure is recorded as the record's error. A config
        failure is only logged: the config may be inlined in the manifest.

        Args:
            registry: Registry host
            repository: Repository name
            tag: Tag name

        Returns:
            The populated result record
        """
        reference = f"{registry}/{repository}:{tag}"
        result = ImageData(
            reference=reference,
            registry=registry,
            repository=repository,
            tag=tag,
        )

        try:
            result.manifest = self.client.get_manifest(reference)
        except RegistryError as e:
            logger.warn_verbose(f"Error fetching manifest for image {reference}: {e}")
            result.error = str(e)

        try:
            result.config = self.client.get_config(reference)
        except RegistryError as e:
            logger.debug(
                f"Error fetching config for image {reference}: {e} "
                "(the config may be in the manifest itself)"
            )

        return result

    def enum_repository(
        self,
        registry: str,
        repository: str,
        tags: Optional[Sequence[str]] = None,
    ) -> Iterator[ImageData]:
        """
        Enumerate every tagged image of one repository.

        Args:
            registry: Registry host
            repository: Repository name
            tags: Tags to fetch; listed from the registry when empty

        Yields:
            One record per tag, or a single error record if listing fails
        """
        def on_crash(e: Exception) -> ImageData:
            return ImageData(
                reference=f"{registry}/{repository}",
                registry=registry,
                repository=repository,
                error=str(e),
            )

        return self._stream(
            lambda emit: self._walk_repository(emit, registry, repository, tags),
            on_crash,
        )

    def enum_registry(
        self,
        registry: str,
        repositories: Optional[Sequence[str]] = None,
        tags: Optional[Sequence[str]] = None,
    ) -> Iterator[ImageData]:
        """
        Enumerate every image of one registry.

        Args:
            registry: Registry host
            repositories: Repositories to walk; listed from the catalog when empty
            tags: Tags to fetch in each repository; listed per repository when empty

        Yields:
            Result records, or a single error record if the catalog fails
        """
        def on_crash(e: Exception) -> ImageData:
            return ImageData(reference=registry, registry=registry, error=str(e))

        return self._stream(
            lambda emit: self._walk_registry(emit, registry, repositories, tags),
            on_crash,
        )

    def enum_registries(
        self,
        registries: Sequence[str],
        repositories: Optional[Sequence[str]] = None,
        tags: Optional[Sequence[str]] = None,
    ) -> Iterator[ImageData]:
        """
        Enumerate every image of several registries as one stream.

        An empty registry list yields exactly one error record.

        Args:
            registries: Registry hosts
            repositories: Repositories to walk on each registry
            tags: Tags to fetch in each repository

        Yields:
            Result records from all registries, in no particular order
        """
        def on_crash(e: Exception) -> ImageData:
            return ImageData(reference="", error=str(e))

        return self._stream(
            lambda emit: self._walk_registries(emit, registries, repositories, tags),
            on_crash,
        )

    def _walk_registries(
        self,
        emit: Emit,
        registries: Sequence[str],
        repositories: Optional[Sequence[str]],
        tags: Optional[Sequence[str]],
    ) -> None:
        if not registries:
            logger.error(NO_REGISTRIES_ERROR)
            emit(ImageData(reference="", error=NO_REGISTRIES_ERROR))
            return

        self._fan_out(
            emit,
            registries,
            lambda registry: self._walk_registry(emit, registry, repositories, tags),
            lambda registry, e: ImageData(
                reference=registry, registry=registry, error=str(e)
            ),
        )

    def _walk_registry(
        self,
        emit: Emit,
        registry: str,
        repositories: Optional[Sequence[str]],
        tags: Optional[Sequence[str]],
    ) -> None:
        logger.info(f"Registry: {registry}")

        if not repositories:
            try:
                repositories = self.client.list_catalog(registry)
            except RegistryError as e:
                logger.warning(f"Error listing repos for {registry}: {e}")
                emit(ImageData(reference=registry, registry=registry, error=str(e)))
                return
            logger.debug(f"Found {len(repositories)} repositories on {registry}")

        self._fan_out(
            emit,
            repositories,
            lambda repository: self._walk_repository(emit, registry, repository, tags),
            lambda repository, e: ImageData(
                reference=f"{registry}/{repository}",
                registry=registry,
                repository=repository,
                error=str(e),
            ),
        )

    def _walk_repository(
        self,
        emit: Emit,
        registry: str,
        repository: str,
        tags: Optional[Sequence[str]],
    ) -> None:
        repository_ref = f"{registry}/{repository}"
        logger.debug(f"Repo: {repository_ref}")

        if not tags:
            try:
                tags = self.client.list_tags(repository_ref)
            except RegistryError as e:
                logger.warn_verbose(f"Error listing tags for {repository_ref}: {e}")
                emit(ImageData(
                    reference=repository_ref,
                    registry=registry,
                    repository=repository,
                    error=str(e),
                ))
                return

        self._fan_out(
            emit,
            tags,
            lambda tag: emit(self.enum_image(registry, repository, tag)),
            lambda tag, e: ImageData(
                reference=f"{repository_ref}:{tag}",
                registry=registry,
                repository=repository,
                tag=tag,
                error=str(e),
            ),
        )

    @staticmethod
    def _fan_out(
        emit: Emit,
        items: Sequence[str],
        task: Callable[[str], None],
        on_crash: Callable[[str, Exception], ImageData],
    ) -> None:
        """
        Run ``task`` for every item concurrently and wait for all of them.

        Items whose task could not be started (the host ran out of threads)
        each get an error record, after the started ones have finished.
        """
        items = list(items)
        if not items:
            return

        futures = {}
        unsubmitted: Sequence[str] = ()
        start_error: Optional[RuntimeError] = None

        # One worker per item: enumeration is never throttled
        with ThreadPoolExecutor(max_workers=len(items)) as executor:
            for index, item in enumerate(items):
                try:
                    futures[executor.submit(task, item)] = item
                except RuntimeError as e:
                    start_error = e
                    unsubmitted = items[index:]
                    logger.error(
                        f"Could not start task for {item}: {e}; "
                        f"{len(unsubmitted)} of {len(items)} items left unsubmitted"
                    )
                    break

            for future in as_completed(futures):
                item = futures[future]
                try:
                    future.result()
                except Exception as e:
                    logger.exception(f"Unexpected error enumerating {item}")
                    emit(on_crash(item, e))

        for item in unsubmitted:
            emit(on_crash(item, start_error))

    @staticmethod
    def _stream(
        walk: Callable[[Emit], None],
        on_crash: Callable[[Exception], ImageData],
    ) -> Iterator[ImageData]:
        """
        Run ``walk`` in the background and yield what it emits.

        The stream ends only after ``walk`` returned, which in turn waits on
        every task it spawned, so nothing is emitted after the end marker.
        """
        results: "queue.Queue[object]" = queue.Queue()

        def produce() -> None:
            try:
                walk(results.put)
            except Exception as e:
                logger.exception("Unexpected error during enumeration")
                results.put(on_crash(e))
            finally:
                results.put(_DONE)

        producer = threading.Thread(target=produce, name="pilreg-enum", daemon=True)
        producer.start()

        while True:
            item = results.get()
            if item is _DONE:
                break
            yield item

        producer.join()
