"""Tests for readrec.catalogue.ItemCatalogue."""

from __future__ import annotations

import json
import threading

import pytest

from readrec.catalogue import ItemCatalogue
from readrec.models import CatalogItem


class TestLookup:
    def test_get_all_items_keeps_catalog_order(self, catalogue, sample_items) -> None:
        assert catalogue.get_all_items() == sample_items

    def test_get_item(self, catalogue, item_scifi) -> None:
        assert catalogue.get_item(1) == item_scifi

    def test_get_missing_item_returns_none(self, catalogue) -> None:
        assert catalogue.get_item(999) is None

    def test_contains_and_len(self, catalogue) -> None:
        assert 1 in catalogue
        assert 999 not in catalogue
        assert len(catalogue) == 10

    def test_snapshot_is_a_copy(self, catalogue) -> None:
        snapshot = catalogue.get_all_items()
        snapshot.clear()
        assert len(catalogue.get_all_items()) == 10

    def test_later_duplicate_replaces_earlier(self) -> None:
        cat = ItemCatalogue([CatalogItem(1, "Old", "A"), CatalogItem(1, "New", "A")])
        assert len(cat) == 1
        assert cat.get_item(1).title == "New"


class TestReplace:
    def test_replace_swaps_contents(self, catalogue) -> None:
        catalogue.replace([CatalogItem(42, "Only", "One")])
        assert [i.item_id for i in catalogue.get_all_items()] == [42]

    def test_concurrent_reads_during_replace(self, sample_items) -> None:
        cat = ItemCatalogue(sample_items)
        errors: list[Exception] = []

        def reader() -> None:
            try:
                for _ in range(200):
                    cat.get_all_items()
                    cat.get_item(1)
            except Exception as exc:  # pragma: no cover
                errors.append(exc)

        threads = [threading.Thread(target=reader) for _ in range(4)]
        for t in threads:
            t.start()
        for _ in range(50):
            cat.replace(sample_items[:5])
            cat.replace(sample_items)
        for t in threads:
            t.join()
        assert errors == []


class TestFromJsonFile:
    def test_loads_items(self, tmp_path) -> None:
        path = tmp_path / "catalog.json"
        path.write_text(json.dumps([
            {"id": 1, "title": "Dune", "author": "Frank Herbert", "genres": "Sci-Fi"},
            {"id": "2", "title": "Emma", "author": "Jane Austen", "genres": "Romance"},
        ]))
        cat = ItemCatalogue.from_json_file(path)
        assert [i.item_id for i in cat.get_all_items()] == [1, 2]
        assert cat.get_item(2).genres == "Romance"

    def test_missing_optional_fields_default_to_empty(self, tmp_path) -> None:
        path = tmp_path / "catalog.json"
        path.write_text(json.dumps([{"id": 7}]))
        item = ItemCatalogue.from_json_file(path).get_item(7)
        assert item == CatalogItem(7, "", "", "")

    def test_skips_malformed_entries(self, tmp_path) -> None:
        path = tmp_path / "catalog.json"
        path.write_text(json.dumps([{"title": "no id"}, {"id": "abc"}, {"id": 3}]))
        cat = ItemCatalogue.from_json_file(path)
        assert [i.item_id for i in cat.get_all_items()] == [3]

    def test_non_list_payload_raises(self, tmp_path) -> None:
        path = tmp_path / "catalog.json"
        path.write_text(json.dumps({"id": 1}))
        with pytest.raises(ValueError):
            ItemCatalogue.from_json_file(path)

    def test_missing_file_raises(self, tmp_path) -> None:
        with pytest.raises(OSError):
            ItemCatalogue.from_json_file(tmp_path / "absent.json")
