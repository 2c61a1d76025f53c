"""Shared pytest fixtures for all readrec tests."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from readrec.catalogue import ItemCatalogue
from readrec.models import CatalogItem, InteractionKind
from readrec.repository import InMemoryInteractionRepository


TS = datetime(2024, 6, 1, 12, 0, 0, tzinfo=timezone.utc)


def at(minutes: int) -> datetime:
    """Return a timestamp *minutes* after :data:`TS`."""
    return TS + timedelta(minutes=minutes)


# ---------------------------------------------------------------------------
# Item fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def item_scifi() -> CatalogItem:
    return CatalogItem(1, "Dune", "Frank Herbert", "Sci-Fi, Adventure")


@pytest.fixture
def item_romance() -> CatalogItem:
    return CatalogItem(2, "Pride and Prejudice", "Jane Austen", "Romance, Classic")


@pytest.fixture
def item_drama() -> CatalogItem:
    return CatalogItem(3, "Beloved", "Toni Morrison", "Drama")


@pytest.fixture
def sample_items(item_scifi, item_romance, item_drama) -> list[CatalogItem]:
    """10-item catalog spanning several genres."""
    extra = [
        CatalogItem(4, "The Hobbit", "J. R. R. Tolkien", "Fantasy, Adventure"),
        CatalogItem(5, "Gone Girl", "Gillian Flynn", "Thriller, Mystery"),
        CatalogItem(6, "Neuromancer", "William Gibson", "sci-fi , Cyberpunk"),
        CatalogItem(7, "Jane Eyre", "Charlotte Bronte", "Romance, Drama"),
        CatalogItem(8, "Foundation", "Isaac Asimov", "Sci-Fi"),
        CatalogItem(9, "The Hound of the Baskervilles", "Arthur Conan Doyle", "Mystery"),
        CatalogItem(10, "Untagged", "Anonymous", ""),
    ]
    return [item_scifi, item_romance, item_drama] + extra


@pytest.fixture
def catalogue(sample_items) -> ItemCatalogue:
    return ItemCatalogue(sample_items)


@pytest.fixture
def repository(catalogue) -> InMemoryInteractionRepository:
    """Repository with no interactions recorded."""
    return InMemoryInteractionRepository(catalogue)


@pytest.fixture
def scifi_reader(repository) -> InMemoryInteractionRepository:
    """User 1 likes sci-fi, dislikes romance and has completed a drama.

    User 2 and user 3 both like item 9, user 2 also likes item 4.
    """
    repository.record(1, 1, InteractionKind.LIKED, at(1))
    repository.record(1, 2, InteractionKind.DISLIKED, at(2))
    repository.record(1, 3, InteractionKind.COMPLETED, at(3))
    repository.record(2, 9, InteractionKind.LIKED, at(4))
    repository.record(2, 4, InteractionKind.LIKED, at(5))
    repository.record(3, 9, InteractionKind.LIKED, at(6))
    return repository
