"""Publisher inference for development certificates.

Priority, first hit wins:

1. An explicit publisher value.
2. The publisher of an explicitly given manifest file (parse errors are fatal).
3. The publisher of a manifest discovered in the project.
4. Failure with instructions.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from pathlib import Path

from sdkforge.collaborators import ManifestReader

logger = logging.getLogger(__name__)


class PublisherInferenceError(RuntimeError):
    """Raised when no publisher can be determined."""


class PublisherInferenceChain:
    """Resolves a certificate publisher through an ordered fallback chain."""

    def __init__(self, reader: ManifestReader) -> None:
        self._reader = reader

    def infer(
        self,
        explicit: str | None,
        manifest_path: Path | None,
        project_discovery: Callable[[], Path | None],
    ) -> str:
        if explicit and explicit.strip():
            logger.debug("Using publisher from command line: %s", explicit)
            return explicit

        if manifest_path is not None and str(manifest_path).strip():
            logger.debug("Extracting publisher from manifest: %s", manifest_path)
            return self._read(Path(manifest_path))

        discovered = project_discovery()
        if discovered is not None:
            logger.debug("Found project manifest: %s", discovered)
            return self._read(Path(discovered))

        raise PublisherInferenceError(
            "Publisher could not be determined. Please specify --publisher, "
            "--manifest, or ensure appxmanifest.xml exists in your project."
        )

    def _read(self, manifest_path: Path) -> str:
        try:
            publisher = self._reader.read_publisher(manifest_path)
        except Exception as exc:
            raise PublisherInferenceError(
                f"Could not read publisher from {manifest_path}: {exc}"
            ) from exc
        if not publisher or not publisher.strip():
            raise PublisherInferenceError(f"Manifest {manifest_path} has no publisher")
        return publisher
