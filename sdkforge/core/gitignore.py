"""Keep workspace artifacts out of version control."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from pathlib import Path

logger = logging.getLogger(__name__)

_HEADER = "# sdkforge"


def ensure_gitignore_entries(directory: Path, entries: Iterable[str]) -> list[str]:
    """Append any of *entries* missing from ``<directory>/.gitignore``.

    Creates the file if needed.  Returns the entries that were added.
    """
    gitignore = Path(directory) / ".gitignore"
    existing_text = gitignore.read_text(encoding="utf-8") if gitignore.is_file() else ""
    present = {line.strip() for line in existing_text.splitlines()}

    missing = [e for e in entries if e.strip() and e.strip() not in present]
    if not missing:
        return []

    lines: list[str] = []
    if existing_text and not existing_text.endswith("\n"):
        lines.append("")
    if _HEADER not in present:
        lines.append(_HEADER)
    lines.extend(missing)

    with open(gitignore, "a", encoding="utf-8") as handle:
        handle.write("\n".join(lines) + "\n")

    logger.info("Added %s to %s", ", ".join(missing), gitignore)
    return missing


def ignore_workspace_directory(project_dir: Path, local_directory_name: str) -> list[str]:
    return ensure_gitignore_entries(project_dir, [f"{local_directory_name}/"])


def ignore_certificate(project_dir: Path, certificate_file_name: str) -> list[str]:
    return ensure_gitignore_entries(project_dir, [certificate_file_name])
