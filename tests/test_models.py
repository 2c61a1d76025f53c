"""Tests for readrec.models dataclasses and genre tokenization."""

from datetime import datetime, timezone

import pytest

from readrec.models import CatalogItem, InteractionKind, InteractionRecord, tokenize_genres


class TestCatalogItem:
    def test_basic_creation(self) -> None:
        item = CatalogItem(item_id=1, title="Dune", author="Frank Herbert", genres="Sci-Fi")
        assert item.item_id == 1
        assert item.title == "Dune"
        assert item.author == "Frank Herbert"
        assert item.genres == "Sci-Fi"

    def test_genres_default_empty(self) -> None:
        item = CatalogItem(item_id=1, title="A", author="B")
        assert item.genres == ""
        assert item.genre_tokens == []

    def test_genre_tokens(self) -> None:
        item = CatalogItem(1, "A", "B", " Sci-Fi , Drama")
        assert item.genre_tokens == ["sci-fi", "drama"]

    def test_equality(self) -> None:
        assert CatalogItem(1, "A", "B", "x") == CatalogItem(1, "A", "B", "x")

    def test_is_immutable(self) -> None:
        item = CatalogItem(1, "A", "B", "x")
        with pytest.raises(AttributeError):
            item.title = "C"  # type: ignore[misc]


class TestInteractionKind:
    def test_values(self) -> None:
        assert InteractionKind.LIKED == "liked"
        assert InteractionKind.DISLIKED == "disliked"
        assert InteractionKind.COMPLETED == "completed"

    def test_from_value(self) -> None:
        assert InteractionKind("disliked") is InteractionKind.DISLIKED

    def test_unknown_value_raises(self) -> None:
        with pytest.raises(ValueError):
            InteractionKind("shelved")


class TestInteractionRecord:
    def test_creation(self) -> None:
        ts = datetime(2024, 6, 1, tzinfo=timezone.utc)
        record = InteractionRecord(user_id=1, item_id=2, kind=InteractionKind.LIKED, timestamp=ts)
        assert record.user_id == 1
        assert record.item_id == 2
        assert record.kind is InteractionKind.LIKED
        assert record.timestamp == ts


class TestTokenizeGenres:
    def test_splits_and_strips(self) -> None:
        assert tokenize_genres("Sci-Fi, Adventure") == ["sci-fi", "adventure"]

    def test_case_insensitive(self) -> None:
        assert tokenize_genres("ROMANCE") == tokenize_genres("romance")

    def test_drops_empty_tokens(self) -> None:
        assert tokenize_genres(" ,drama,, ,") == ["drama"]

    def test_removes_duplicates_keeping_order(self) -> None:
        assert tokenize_genres("b, a, B") == ["b", "a"]

    @pytest.mark.parametrize("value", ["", None, " , "])
    def test_empty_input(self, value) -> None:
        assert tokenize_genres(value) == []
