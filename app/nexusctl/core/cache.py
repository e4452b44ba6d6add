"""Component cache for inspection and offline replay.

This module provides the ComponentCache class that keeps fetched
components per repository and persists them to a JSON file.
"""

import json
import logging
from collections.abc import Iterable
from pathlib import Path

from nexusctl.models.component import Component

logger = logging.getLogger(__name__)


class ComponentCache:
    """Per-repository store of fetched components.

    Default location: ~/.cache/nexusctl/components.json

    The cache owns its entries. Callers receive tuples, so nothing they do
    with a returned value can change the cache.
    """

    def __init__(self) -> None:
        self._entries: dict[str, tuple[Component, ...]] = {}

    def __contains__(self, repository: object) -> bool:
        return repository in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def repositories(self) -> list[str]:
        """Cached repository names, sorted."""
        return sorted(self._entries)

    def get(self, repository: str) -> tuple[Component, ...]:
        """Return the cached components of a repository (empty if unknown)."""
        return self._entries.get(repository, ())

    def put(self, repository: str, components: Iterable[Component]) -> None:
        """Merge components into a repository's entry.

        A component with a known id replaces the cached one in place; new
        ids are appended in the given order.

        Args:
            repository: Repository name.
            components: Components to merge.
        """
        merged = {c.id: c for c in self._entries.get(repository, ())}
        for component in components:
            merged[component.id] = component
        self._entries[repository] = tuple(merged.values())

    def clear(self) -> None:
        """Drop all cached entries."""
        self._entries.clear()

    def save(self, path: Path) -> Path:
        """Write the cache as pretty-printed JSON.

        Args:
            path: Target file. Parent directories are created.

        Returns:
            The written path.

        Raises:
            OSError: If the file cannot be written.
        """
        path.parent.mkdir(parents=True, exist_ok=True)
        data = {
            repository: [c.to_dict() for c in components]
            for repository, components in self._entries.items()
        }
        path.write_text(json.dumps(data, indent=2) + "\n", encoding="utf-8")
        logger.info("Saved %d repositories to cache %s", len(data), path)
        return path

    def load(self, path: Path) -> bool:
        """Replace the cache contents with a previously saved file.

        Args:
            path: Cache file written by save().

        Returns:
            True if the file existed and was loaded, False otherwise.

        Raises:
            ValueError: If the file is not a valid cache document.
        """
        if not path.exists():
            logger.info("No cache file at %s", path)
            return False

        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as e:
            msg = f"Invalid cache file {path}: {e}"
            raise ValueError(msg) from e
        if not isinstance(data, dict):
            msg = f"Invalid cache file {path}: expected an object keyed by repository"
            raise ValueError(msg)

        self._entries = {
            str(repository): tuple(Component.from_dict(item) for item in items)
            for repository, items in data.items()
        }
        logger.info("Loaded %d repositories from cache %s", len(self._entries), path)
        return True
