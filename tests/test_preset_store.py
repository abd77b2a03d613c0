"""
Preset store tests: JSON persistence, built-in protection and catalog indexing.
"""
import json

import pytest

from pattern_tool.models.pattern_config import DEFAULT_PRESETS, Preset
from pattern_tool.services.preset_store import (
    InMemoryPresetStore,
    JsonPresetStore,
    PresetCatalog,
    PresetStoreError,
)


@pytest.fixture
def store_path(tmp_path):
    return tmp_path / "presets" / "presets.json"


class TestJsonPresetStore:
    def test_missing_file_is_empty(self, store_path):
        assert JsonPresetStore(store_path).load() == []

    def test_save_and_load(self, store_path):
        store = JsonPresetStore(store_path)
        store.save([Preset(3, 4, 300, 400), Preset(2, 2, 64, 64)])
        assert json.loads(store_path.read_text()) == [[3, 4, 300, 400], [2, 2, 64, 64]]
        loaded = JsonPresetStore(store_path).load()
        assert [p.dimensions for p in loaded] == [(3, 4, 300, 400), (2, 2, 64, 64)]
        assert not any(p.builtin for p in loaded)

    @pytest.mark.parametrize("content", ["{not json", '{"a": 1}', "[[1, 2, 3]]", '[[0, 1, 1, 1]]', '["x"]'])
    def test_malformed_file(self, store_path, content):
        store_path.parent.mkdir(parents=True)
        store_path.write_text(content)
        with pytest.raises(PresetStoreError):
            JsonPresetStore(store_path).load()


class TestPresetCatalog:
    def test_builtins_first(self):
        catalog = PresetCatalog(InMemoryPresetStore([Preset(2, 3, 20, 30)]))
        presets = catalog.all()
        assert presets[: len(DEFAULT_PRESETS)] == list(DEFAULT_PRESETS)
        assert presets[-1].dimensions == (2, 3, 20, 30)

    def test_add_persists(self, store_path):
        catalog = PresetCatalog(JsonPresetStore(store_path))
        index = catalog.add(Preset(4, 4, 400, 400))
        assert index == len(DEFAULT_PRESETS)
        reloaded = PresetCatalog(JsonPresetStore(store_path))
        assert reloaded.get(index).dimensions == (4, 4, 400, 400)

    def test_builtin_duplicate_not_stored(self, store_path):
        catalog = PresetCatalog(JsonPresetStore(store_path))
        assert catalog.add(Preset(9, 9, 720, 720)) == 0
        assert not store_path.exists()

    def test_custom_duplicate_not_stored_twice(self):
        store = InMemoryPresetStore()
        catalog = PresetCatalog(store)
        first = catalog.add(Preset(5, 5, 50, 50))
        assert catalog.add(Preset(5, 5, 50, 50)) == first
        assert len(store.load()) == 1

    def test_delete_custom(self):
        store = InMemoryPresetStore([Preset(2, 2, 20, 20), Preset(3, 3, 30, 30)])
        catalog = PresetCatalog(store)
        removed = catalog.delete(len(DEFAULT_PRESETS))
        assert removed.dimensions == (2, 2, 20, 20)
        assert [p.dimensions for p in store.load()] == [(3, 3, 30, 30)]

    def test_delete_builtin_refused(self):
        catalog = PresetCatalog(InMemoryPresetStore())
        with pytest.raises(ValueError):
            catalog.delete(0)
        assert len(catalog.all()) == len(DEFAULT_PRESETS)

    @pytest.mark.parametrize("index", [-1, 99])
    def test_index_out_of_range(self, index):
        catalog = PresetCatalog(InMemoryPresetStore())
        with pytest.raises(IndexError):
            catalog.get(index)
        with pytest.raises(IndexError):
            catalog.delete(index)

    def test_label(self):
        assert DEFAULT_PRESETS[0].label() == "9×9 / 720×720px (стандарт)"
        assert Preset(1, 2, 3, 4).label().endswith("(пользовательский)")


class FailingSaveStore(InMemoryPresetStore):
    def save(self, presets):
        raise PresetStoreError("disk full")


class TestCatalogSaveFailure:
    def test_add_keeps_state(self):
        catalog = PresetCatalog(FailingSaveStore())
        with pytest.raises(PresetStoreError):
            catalog.add(Preset(5, 5, 50, 50))
        assert len(catalog.all()) == len(DEFAULT_PRESETS)

    def test_delete_keeps_state(self):
        store = FailingSaveStore([Preset(2, 2, 20, 20)])
        catalog = PresetCatalog(store)
        with pytest.raises(PresetStoreError):
            catalog.delete(len(DEFAULT_PRESETS))
        assert catalog.all()[-1].dimensions == (2, 2, 20, 20)
        assert [p.dimensions for p in store.load()] == [(2, 2, 20, 20)]
