"""
Tests for the recent destinations cache
"""

import json

import pytest

from aptracker.core.destinations import (
    MAX_RECENT,
    STORAGE_KEY,
    Destination,
    DestinationStore,
    RecentDestinations,
    StorageError,
)


def destination(index: int) -> Destination:
    return Destination(name=f"Place {index}", lat=46.0 + index / 100, lng=11.1)


class TestRecentDestinations:
    """Test the bounded most-recently-used list"""

    def test_newest_first(self):
        recent = RecentDestinations()
        recent.add(destination(1))
        recent.add(destination(2))
        assert [d.name for d in recent] == ["Place 2", "Place 1"]

    def test_capacity(self):
        recent = RecentDestinations()
        for index in range(MAX_RECENT + 3):
            recent.add(destination(index))

        assert len(recent) == MAX_RECENT
        assert recent.items()[0].name == f"Place {MAX_RECENT + 2}"
        assert recent.get(destination(0).key) is None

    def test_readding_moves_to_front_without_duplicate(self):
        recent = RecentDestinations()
        for index in range(3):
            recent.add(destination(index))

        recent.add(Destination(name="Renamed", lat=destination(0).lat, lng=destination(0).lng))

        assert len(recent) == 3
        assert recent.items()[0].name == "Renamed"
        assert [d.key for d in recent].count(destination(0).key) == 1

    def test_loading_more_than_capacity_keeps_newest(self):
        stored = [destination(index) for index in range(MAX_RECENT + 2)]
        recent = RecentDestinations(stored)

        assert len(recent) == MAX_RECENT
        assert [d.name for d in recent] == [f"Place {i}" for i in range(MAX_RECENT)]

    def test_key_is_coordinate_pair(self):
        assert Destination(name="Uni", lat=46.0679, lng=11.1211).key == "46.0679-11.1211"

    def test_remove(self):
        recent = RecentDestinations([destination(1)])
        assert recent.remove(destination(1).key) is True
        assert recent.remove(destination(1).key) is False
        assert len(recent) == 0


class TestDestinationStore:
    """Test JSON persistence"""

    @pytest.fixture
    def store(self, tmp_path):
        return DestinationStore(tmp_path / "storage.json")

    def test_load_missing_file(self, store):
        assert len(store.load()) == 0

    def test_remember_persists(self, store):
        store.remember(destination(1))
        store.remember(destination(2))

        data = json.loads(store.path.read_text())
        assert [d["name"] for d in data[STORAGE_KEY]] == ["Place 2", "Place 1"]
        assert [d.name for d in store.load()] == ["Place 2", "Place 1"]

    def test_remember_caps_stored_list(self, store):
        for index in range(8):
            store.remember(destination(index))
        assert len(store.load()) == MAX_RECENT

    def test_other_keys_preserved(self, store):
        store.path.write_text(json.dumps({"theme": "dark"}))
        store.remember(destination(1))
        assert json.loads(store.path.read_text())["theme"] == "dark"

    def test_invalid_entries_skipped(self, store):
        store.path.write_text(json.dumps({STORAGE_KEY: [{"name": "x"}, destination(1).model_dump(mode="json")]}))
        assert [d.name for d in store.load()] == ["Place 1"]

    def test_corrupt_file(self, store):
        store.path.write_text("{not json")
        with pytest.raises(StorageError):
            store.load()

    def test_forget(self, store):
        store.remember(destination(1))
        assert store.forget(destination(1).key) is True
        assert store.forget(destination(1).key) is False
        assert len(store.load()) == 0
