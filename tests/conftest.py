"""Shared fixtures: an in-memory registry standing in for crane."""

import threading
import time
from pathlib import Path
from typing import Dict, List, Optional

import pytest

from pilreg_py.utils.registry import RegistryError


class FakeRegistryClient:
    """
    Thread-safe in-memory registry.

    ``images`` maps ``registry/repository`` to ``{tag: (manifest, config)}``.
    A ``None`` manifest or config makes that fetch fail.
    """

    def __init__(self, images=None, failing_catalogs=(), failing_tag_lists=(), failing_pulls=()):
        self.images: Dict[str, Dict[str, tuple]] = images or {}
        self.failing_catalogs = set(failing_catalogs)
        self.failing_tag_lists = set(failing_tag_lists)
        self.failing_pulls = set(failing_pulls)
        self.calls: List[tuple] = []
        self._lock = threading.Lock()
        self._active_pulls = 0
        self.max_active_pulls = 0
        self.pull_delay = 0.0

    def _record(self, *call) -> None:
        with self._lock:
            self.calls.append(call)

    def calls_to(self, name: str) -> List[tuple]:
        with self._lock:
            return [call for call in self.calls if call[0] == name]

    def list_catalog(self, registry: str) -> List[str]:
        self._record("list_catalog", registry)
        if registry in self.failing_catalogs:
            raise RegistryError(f"catalog unavailable on {registry}")
        prefix = registry + "/"
        return [key[len(prefix):] for key in self.images if key.startswith(prefix)]

    def list_tags(self, repository: str) -> List[str]:
        self._record("list_tags", repository)
        if repository in self.failing_tag_lists:
            raise RegistryError(f"tags unavailable for {repository}")
        return list(self.images.get(repository, {}))

    def _lookup(self, reference: str) -> tuple:
        repository, _, tag = reference.rpartition(":")
        return self.images.get(repository, {}).get(tag, (None, None))

    def get_manifest(self, reference: str) -> str:
        self._record("get_manifest", reference)
        manifest, _ = self._lookup(reference)
        if manifest is None:
            raise RegistryError(f"MANIFEST_UNKNOWN: {reference}")
        return manifest

    def get_config(self, reference: str) -> str:
        self._record("get_config", reference)
        _, config = self._lookup(reference)
        if config is None:
            raise RegistryError(f"config not found: {reference}")
        return config

    def pull_and_save(self, reference: str, dest_path: str, cache_path: Optional[str] = None) -> None:
        self._record("pull_and_save", reference, dest_path, cache_path)
        with self._lock:
            self._active_pulls += 1
            self.max_active_pulls = max(self.max_active_pulls, self._active_pulls)
        try:
            if self.pull_delay:
                time.sleep(self.pull_delay)
            if reference in self.failing_pulls:
                raise RegistryError(f"pull failed for {reference}")
            Path(dest_path).write_bytes(b"tarball:" + reference.encode())
        finally:
            with self._lock:
                self._active_pulls -= 1


@pytest.fixture
def fake_registry() -> FakeRegistryClient:
    """A registry with two repositories and three tags."""
    return FakeRegistryClient(images={
        "reg1/app": {
            "v1": ('{"manifest": "app:v1"}', '{"config": "app:v1"}'),
            "v2": ('{"manifest": "app:v2"}', '{"config": "app:v2"}'),
        },
        "reg1/library/db": {
            "latest": ('{"manifest": "db"}', None),
        },
    })


@pytest.fixture
def make_registry():
    """Factory for registries with custom contents and failures."""
    return FakeRegistryClient
