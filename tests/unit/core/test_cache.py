"""Unit tests for the component cache."""

import json
from collections.abc import Callable
from pathlib import Path

import pytest
from nexusctl.core.cache import ComponentCache
from nexusctl.models.component import Component

Factory = Callable[..., Component]


class TestComponentCache:
    """Tests for ComponentCache class."""

    def test_get_unknown_repository(self) -> None:
        """Unknown repositories yield an empty tuple."""
        cache = ComponentCache()
        assert cache.get("missing") == ()
        assert "missing" not in cache

    def test_put_merges_by_id(self, component_factory: Factory) -> None:
        """Known ids are replaced in place, new ids appended."""
        cache = ComponentCache()
        cache.put("builds", [component_factory("a", id="1"), component_factory("b", id="2")])
        cache.put("builds", [component_factory("a2", id="1"), component_factory("c", id="3")])

        assert [c.name for c in cache.get("builds")] == ["a2", "b", "c"]

    def test_get_returns_immutable_copy(self, component_factory: Factory) -> None:
        """Callers cannot change cached entries through the returned value."""
        cache = ComponentCache()
        source = [component_factory("a")]
        cache.put("builds", source)
        source.append(component_factory("b"))

        assert isinstance(cache.get("builds"), tuple)
        assert len(cache.get("builds")) == 1

    def test_save_and_load(self, tmp_path: Path, component_factory: Factory) -> None:
        """A saved cache loads back with equal components."""
        path = tmp_path / "sub" / "cache.json"
        cache = ComponentCache()
        cache.put("builds", [component_factory("a"), component_factory("b")])
        cache.put("other", [component_factory("c")])

        cache.save(path)
        loaded = ComponentCache()

        assert loaded.load(path) is True
        assert loaded.repositories == ["builds", "other"]
        assert loaded.get("builds") == cache.get("builds")

    def test_saved_file_uses_api_layout(self, tmp_path: Path, component_factory: Factory) -> None:
        """The cache file keeps the REST API's camelCase keys."""
        path = tmp_path / "cache.json"
        cache = ComponentCache()
        cache.put("builds", [component_factory("a", size=42)])
        cache.save(path)

        data = json.loads(path.read_text())

        assert data["builds"][0]["assets"][0]["fileSize"] == 42
        assert "downloadUrl" in data["builds"][0]["assets"][0]

    def test_load_missing_file(self, tmp_path: Path) -> None:
        """A missing file leaves the cache untouched."""
        assert ComponentCache().load(tmp_path / "nope.json") is False

    def test_load_invalid_file(self, tmp_path: Path) -> None:
        """Broken files raise ValueError."""
        path = tmp_path / "cache.json"
        path.write_text("[1, 2")
        with pytest.raises(ValueError, match="Invalid cache file"):
            ComponentCache().load(path)

        path.write_text("[]")
        with pytest.raises(ValueError, match="expected an object"):
            ComponentCache().load(path)
