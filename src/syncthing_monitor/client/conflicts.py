"""Cleanup of Syncthing conflict copies.

Syncthing keeps both versions when two devices edit the same file
concurrently, naming the loser like:

    notes.sync-conflict-20230101-120000-ABCDEFG.md

This module provides:
- find_conflict_files: Filter paths that look like conflict copies
- delete_conflict_files: Remove every conflict copy, counting successes
- LocalFolder: Adapter for a folder on the local filesystem
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Protocol

logger = logging.getLogger(__name__)

CONFLICT_PATTERN = re.compile(r"\.sync-conflict-[\d-]+")


class VaultAdapter(Protocol):
    """File access used by the conflict cleanup."""

    def list_files(self) -> list[str]:
        """List file paths relative to the folder root."""
        ...

    def remove(self, path: str) -> None:
        """Delete a file by relative path."""
        ...


class LocalFolder:
    """VaultAdapter for a folder on the local filesystem."""

    def __init__(self, root: Path) -> None:
        self._root = root

    @property
    def root(self) -> Path:
        """Folder root."""
        return self._root

    def list_files(self) -> list[str]:
        """List all regular files below the root, as POSIX relative paths.

        Raises:
            FileNotFoundError: If the root is not a directory.
        """
        if not self._root.is_dir():
            raise FileNotFoundError(f"Folder not found: {self._root}")
        return sorted(
            path.relative_to(self._root).as_posix()
            for path in self._root.rglob("*")
            if path.is_file()
        )

    def remove(self, path: str) -> None:
        """Delete a file below the root."""
        (self._root / path).unlink()


@dataclass
class ConflictCleanupResult:
    """Result of a conflict cleanup.

    Attributes:
        found: Conflict files that were identified.
        deleted: Number of files removed.
        failed: Files whose removal failed.
    """

    found: list[str] = field(default_factory=list)
    deleted: int = 0
    failed: list[str] = field(default_factory=list)


def is_conflict_file(path: str) -> bool:
    """Check if a path looks like a Syncthing conflict copy."""
    return CONFLICT_PATTERN.search(path) is not None


def find_conflict_files(paths: Iterable[str]) -> list[str]:
    """Filter conflict copies from a list of paths."""
    return [path for path in paths if is_conflict_file(path)]


def delete_conflict_files(vault: VaultAdapter) -> ConflictCleanupResult:
    """Delete every conflict copy in a folder.

    A failed deletion is logged and recorded; the remaining files are
    still attempted.

    Args:
        vault: Folder to clean.

    Returns:
        Which files were found, deleted and failed.
    """
    result = ConflictCleanupResult(found=find_conflict_files(vault.list_files()))

    for path in result.found:
        try:
            vault.remove(path)
        except Exception as e:
            logger.warning("Failed to delete conflict file %s: %s", path, e)
            result.failed.append(path)
        else:
            result.deleted += 1
            logger.debug("Deleted conflict file %s", path)

    if result.found:
        logger.info(
            "Conflict cleanup: %d of %d files deleted",
            result.deleted,
            len(result.found),
        )
    return result
