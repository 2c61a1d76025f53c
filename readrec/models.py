"""Core domain dataclasses shared across all readrec modules."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum


class InteractionKind(str, Enum):
    """The current status a user has given an item."""

    LIKED = "liked"
    DISLIKED = "disliked"
    COMPLETED = "completed"


@dataclass(frozen=True)
class CatalogItem:
    """A single book in the catalog.

    Attributes:
        item_id: Unique, stable identifier.
        title: Human-readable title.
        author: Author display name.
        genres: Free-form, comma-separated genre labels
            (e.g. ``"Sci-Fi, space opera"``).  Compare through
            :func:`tokenize_genres`, never as raw text.
    """

    item_id: int
    title: str
    author: str
    genres: str = ""

    @property
    def genre_tokens(self) -> list[str]:
        return tokenize_genres(self.genres)


@dataclass(frozen=True)
class InteractionRecord:
    """One entry in the append-only interaction log.

    Several records may exist for the same ``(user_id, item_id)`` pair;
    only the one with the latest timestamp is active.

    Attributes:
        user_id: The interacting user.
        item_id: The item involved.
        kind: What the user did (liked, disliked, completed).
        timestamp: When the interaction happened (UTC).
    """

    user_id: int
    item_id: int
    kind: InteractionKind
    timestamp: datetime


def tokenize_genres(genres: str | None) -> list[str]:
    """Split a genre string into normalised tokens.

    Splits on commas, strips whitespace, lowercases and drops empty
    tokens.  Order is preserved and duplicates are removed.

    >>> tokenize_genres(" Sci-Fi,, Drama ,sci-fi")
    ['sci-fi', 'drama']
    """
    if not genres:
        return []
    tokens: list[str] = []
    for raw in genres.split(","):
        token = raw.strip().lower()
        if token and token not in tokens:
            tokens.append(token)
    return tokens
