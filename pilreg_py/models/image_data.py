"""Result record emitted by the enumeration tree."""

from dataclasses import dataclass
from typing import Any, Dict, Iterable, Optional
import json


@dataclass
class ImageData:
    """
    One image enumerated from a registry, or an enumeration error.

    ``repository`` and ``tag`` stay empty when the failure happened before
    they were known (catalog or tag listing). ``error`` is independent of
    ``manifest``/``config``: a record can carry both data and an error.
    """
    reference: str
    registry: str = ""
    repository: str = ""
    tag: str = ""
    manifest: str = ""
    config: str = ""
    error: Optional[str] = None

    @property
    def failed(self) -> bool:
        """Whether any step for this image reported an error."""
        return self.error is not None

    def add_error(self, message: str) -> None:
        """Append an error, keeping any error already recorded."""
        if self.error:
            self.error = f"{self.error}; {message}"
        else:
            self.error = message

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary using the published output field names."""
        return {
            "Reference": self.reference,
            "Registry": self.registry,
            "Repository": self.repository,
            "Tag": self.tag,
            "Manifest": self.manifest,
            "Config": self.config,
            "Error": self.error,
        }


def results_to_json(images: Iterable[ImageData]) -> str:
    """Serialize records as a single JSON array."""
    return json.dumps([image.to_dict() for image in images])
