"""Registry access through the crane CLI.

crane handles authentication (docker keychain), transport selection,
pagination of the catalog and tags APIs, and on-disk layer caching.
"""

from dataclasses import dataclass
from typing import List, Optional, Protocol

from .subprocess import run_command
from .logging import get_logger

logger = get_logger(__name__)


class RegistryError(Exception):
    """A registry call made through crane failed."""


@dataclass(frozen=True)
class RegistryOptions:
    """Registry connection configuration, shared read-only by a whole scan."""
    insecure: bool = False
    skip_tls: bool = False
    timeout: Optional[int] = None

    def get_crane_args(self) -> List[str]:
        """Get crane global arguments."""
        # crane has a single switch for plain HTTP and unverified TLS
        if self.insecure or self.skip_tls:
            return ["--insecure"]
        return []


class RegistryClient(Protocol):
    """Operations the enumerators and the storage pipeline need from a registry."""

    def list_catalog(self, registry: str) -> List[str]: ...

    def list_tags(self, repository: str) -> List[str]: ...

    def get_manifest(self, reference: str) -> str: ...

    def get_config(self, reference: str) -> str: ...

    def pull_and_save(
        self, reference: str, dest_path: str, cache_path: Optional[str] = None
    ) -> None: ...


class CraneClient:
    """RegistryClient implementation that shells out to crane."""

    def __init__(self, options: Optional[RegistryOptions] = None, binary: str = "crane"):
        """
        Initialize client.

        Args:
            options: Registry connection options
            binary: crane executable name or path
        """
        self.options = options or RegistryOptions()
        self.binary = binary

    def _run(self, *args: str) -> str:
        cmd = [self.binary, *args, *self.options.get_crane_args()]
        result = run_command(cmd, timeout=self.options.timeout)
        if not result.success:
            raise RegistryError(f"crane {args[0]} failed: {result.error_message}")
        return result.stdout

    @staticmethod
    def _split_lines(output: str) -> List[str]:
        return [line.strip() for line in output.splitlines() if line.strip()]

    def list_catalog(self, registry: str) -> List[str]:
        """
        List the repositories a registry exposes through its catalog API.

        Args:
            registry: Registry host (optionally with port)

        Returns:
            Repository names in the order the registry returned them
        """
        return self._split_lines(self._run("catalog", registry))

    def list_tags(self, repository: str) -> List[str]:
        """
        List the tags of a repository.

        Args:
            repository: Repository reference as ``registry/repository``

        Returns:
            Tag names in the order the registry returned them
        """
        return self._split_lines(self._run("ls", repository))

    def get_manifest(self, reference: str) -> str:
        """Fetch the raw manifest document for an image reference."""
        return self._run("manifest", reference)

    def get_config(self, reference: str) -> str:
        """Fetch the raw config blob for an image reference."""
        return self._run("config", reference)

    def pull_and_save(
        self, reference: str, dest_path: str, cache_path: Optional[str] = None
    ) -> None:
        """
        Pull an image and save its filesystem as a tarball.

        Args:
            reference: Image reference
            dest_path: Tarball path to write
            cache_path: Optional layer cache directory
        """
        args = ["pull"]
        if cache_path:
            args.extend(["--cache_path", cache_path])
        args.extend([reference, dest_path])
        logger.debug(f"Pulling {reference} to {dest_path}")
        self._run(*args)
