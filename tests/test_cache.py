"""Tests for locator escaping and the local cache."""

import os

import pytest

from par_client.transport.cache import LocalCache, escape_locator


class TestEscapeLocator:
    """Test escape_locator."""

    def test_safe_characters_kept(self):
        """Test that word characters and dots pass through."""
        assert escape_locator("modules_dists.dbm.zip") == "modules_dists.dbm.zip"

    def test_unsafe_characters_escaped(self):
        """Test URL punctuation escaping."""
        assert escape_locator("http://h/a-b") == "http%3A%2F%2Fh%2Fa%2Db"

    def test_non_ascii_escaped_per_byte(self):
        """Test that multi-byte characters escape each UTF-8 byte."""
        assert escape_locator("é") == "%C3%A9"

    def test_idempotent(self):
        """Test that the same locator always maps to the same name."""
        locator = "https://example.org/repo/my_arch/5.8.7/Foo-1.0-my_arch-5.8.7.par"
        assert escape_locator(locator) == escape_locator(locator)

    def test_distinct_locators_distinct_names(self):
        """Test that separators do not collapse."""
        assert escape_locator("a/b") != escape_locator("a_b")
        assert escape_locator("a/b") != escape_locator("a%2Fb")

    def test_empty_locator_rejected(self):
        """Test that an empty locator is a programmer error."""
        with pytest.raises(ValueError):
            escape_locator("")


class TestLocalCache:
    """Test LocalCache."""

    def test_path_for_under_root(self, tmp_path):
        """Test path construction without touching disk."""
        cache = LocalCache(str(tmp_path / "c"))
        path = cache.path_for("http://h/x.par")
        assert os.path.dirname(path) == str(tmp_path / "c")
        assert not os.path.exists(str(tmp_path / "c"))

    def test_ensure_root(self, tmp_path):
        """Test that the root is created on demand."""
        cache = LocalCache(str(tmp_path / "nested" / "c"))
        cache.ensure_root()
        assert os.path.isdir(str(tmp_path / "nested" / "c"))
        cache.ensure_root()

    def test_remove_idempotent(self, tmp_path):
        """Test remove on present and absent entries."""
        cache = LocalCache(str(tmp_path))
        path = cache.path_for("http://h/x.par")
        with open(path, "w", encoding="utf-8") as fh:
            fh.write("x")
        assert cache.contains("http://h/x.par")
        assert cache.remove("http://h/x.par") is True
        assert cache.remove("http://h/x.par") is False
        assert not cache.contains("http://h/x.par")

    def test_clear_only_touches_cache_names(self, tmp_path):
        """Test that clear leaves foreign files alone and can repeat."""
        cache = LocalCache(str(tmp_path))
        for locator in ("http://h/a.par", "http://h/b.par"):
            with open(cache.path_for(locator), "w", encoding="utf-8") as fh:
                fh.write("x")
        foreign = tmp_path / "keep-me.txt"
        foreign.write_text("x")
        assert cache.clear() == 2
        assert foreign.exists()
        assert cache.clear() == 0

    def test_clear_removes_partial_downloads(self, tmp_path):
        """Test that leftovers of an interrupted write are swept."""
        cache = LocalCache(str(tmp_path))
        leftover = tmp_path / ".part-abc123"
        leftover.write_text("half")
        assert cache.clear() == 1
        assert not leftover.exists()

    def test_clear_missing_root(self, tmp_path):
        """Test clear when nothing was ever cached."""
        assert LocalCache(str(tmp_path / "missing")).clear() == 0
