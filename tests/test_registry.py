"""Tests for the entry registry."""

from dataclasses import FrozenInstanceError
from pathlib import Path

import pytest

from remotecache.cache.identifiers import derive_id
from remotecache.cache.registry import (
    CacheEntry,
    EntryRegistry,
    make_entry_name,
    parse_entry_name,
)

URL = "http://example.com/a"
ENTRY_ID = derive_id(URL)


@pytest.fixture
def registry(tmp_path):
    """Create a registry over a temporary directory."""
    return EntryRegistry(str(tmp_path), default_ttl=86400)


class TestEntryNames:
    """Test blob filename handling."""

    def test_make_name_default_ttl(self):
        """Test that default TTL entries have no suffix."""
        assert make_entry_name(ENTRY_ID, 86400, 86400) == f"{ENTRY_ID}.cache"

    def test_make_name_custom_ttl(self):
        """Test that other TTLs are encoded in the name."""
        assert make_entry_name(ENTRY_ID, 60, 86400) == f"{ENTRY_ID}-60.cache"

    def test_parse_with_ttl(self):
        """Test parsing <id>-<ttl>.cache."""
        assert parse_entry_name(f"/x/{ENTRY_ID}-3600.cache", 86400) == (
            ENTRY_ID,
            3600,
            True,
        )

    def test_parse_id_only(self):
        """Test that <id>.cache implies the default TTL."""
        assert parse_entry_name(f"{ENTRY_ID}.cache", 500) == (ENTRY_ID, 500, False)

    def test_parse_malformed_suffix(self):
        """Test that a non-numeric suffix is treated as id-only."""
        assert parse_entry_name(f"{ENTRY_ID}-soon.cache", 500) == (
            ENTRY_ID,
            500,
            False,
        )
        # Unicode digits that int() cannot parse
        assert parse_entry_name(f"{ENTRY_ID}-².cache", 500) == (
            ENTRY_ID,
            500,
            False,
        )

    @pytest.mark.parametrize(
        "name", ["notanid.cache", f"{ENTRY_ID}.txt", f"{ENTRY_ID}.cache.tmp", ".cache"]
    )
    def test_parse_rejects(self, name):
        """Test that names without a valid id are rejected."""
        assert parse_entry_name(name, 86400) is None


class TestGetOrCreate:
    """Test get_or_create."""

    def test_creates_entry(self, registry, tmp_path):
        """Test that a new entry points at <dir>/<id>.cache."""
        entry = registry.get_or_create(URL)

        assert entry == CacheEntry(
            entry_id=ENTRY_ID, ttl=86400, path=str(tmp_path / f"{ENTRY_ID}.cache")
        )
        assert URL in registry
        assert len(registry) == 1

    def test_ttl_override_on_create(self, registry, tmp_path):
        """Test that a TTL override applies to new entries."""
        entry = registry.get_or_create(URL, ttl=60)

        assert entry.ttl == 60
        assert entry.path == str(tmp_path / f"{ENTRY_ID}-60.cache")

    def test_first_reference_wins(self, registry):
        """Test that later TTL overrides are ignored."""
        first = registry.get_or_create(URL)
        second = registry.get_or_create(URL, ttl=60)

        assert second is first
        assert second.ttl == 86400

    def test_key_and_id_share_entry(self, registry):
        """Test that a key and its id resolve to one entry."""
        assert registry.get_or_create(URL) is registry.get_or_create(ENTRY_ID)

    def test_get_does_not_create(self, registry):
        """Test that get leaves the registry untouched."""
        assert registry.get(URL) is None
        assert len(registry) == 0

    def test_remove(self, registry):
        """Test removing entries."""
        entry = registry.get_or_create(URL)

        assert registry.remove(URL) is entry
        assert registry.remove(URL) is None
        assert URL not in registry

    def test_clear(self, registry):
        """Test forgetting every entry."""
        registry.get_or_create(URL)
        registry.get_or_create("http://example.com/b")
        registry.clear()

        assert len(registry) == 0


class TestLoadFromStorage:
    """Test scanning the cache directory."""

    def test_load_entries(self, registry, tmp_path):
        """Test that every blob is registered with its TTL."""
        other = derive_id("http://example.com/b")
        (tmp_path / f"{ENTRY_ID}-3600.cache").write_bytes(b"content")
        (tmp_path / f"{other}.cache").write_bytes(b"content")

        assert registry.load_from_storage() == 2
        assert registry.get(URL).ttl == 3600
        assert registry.get(other).ttl == 86400
        assert registry.get(other).path == str(tmp_path / f"{other}.cache")

    def test_suffixed_name_wins(self, registry, tmp_path):
        """Test that an explicit TTL beats an id-only file for the same entry."""
        (tmp_path / f"{ENTRY_ID}-3600.cache").write_bytes(b"content")
        (tmp_path / f"{ENTRY_ID}.cache").write_bytes(b"content")

        assert registry.load_from_storage() == 1
        assert registry.get(URL).ttl == 3600

    def test_skips_unrelated_files(self, registry, tmp_path):
        """Test that foreign files are ignored."""
        (tmp_path / "notes.cache").write_text("x")
        (tmp_path / f"{ENTRY_ID}.cache.tmp").write_text("x")
        (tmp_path / "subdir.cache").mkdir()

        assert registry.load_from_storage() == 0

    def test_unicode_digit_suffix_loads_as_id_only(self, registry, tmp_path):
        """Test that a non-ASCII digit suffix does not break the scan."""
        (tmp_path / f"{ENTRY_ID}-².cache").write_bytes(b"content")

        assert registry.load_from_storage() == 1
        assert registry.get(URL).ttl == 86400

    def test_missing_directory(self, tmp_path):
        """Test that a missing directory loads nothing."""
        registry = EntryRegistry(str(tmp_path / "absent"), default_ttl=10)
        assert registry.load_from_storage() == 0

    def test_iteration(self, registry):
        """Test iterating over entries."""
        registry.get_or_create(URL)
        assert [e.entry_id for e in registry] == [ENTRY_ID]
        assert isinstance(registry.entries(), list)


def test_entries_are_immutable(tmp_path):
    """Test that entries cannot be mutated."""
    entry = EntryRegistry(str(tmp_path), default_ttl=10).get_or_create(URL)
    with pytest.raises(FrozenInstanceError):
        entry.ttl = 5
    assert Path(entry.path).parent == tmp_path
