"""Abstract base class for all ranking backends."""

from __future__ import annotations

from abc import ABC, abstractmethod

from readrec.models import CatalogItem

DEFAULT_RANK_LIMIT = 8


class RankingBackend(ABC):
    """A ranking backend orders catalog items against one user's taste.

    The :class:`~readrec.engine.RecommendationEngine` only talks to its
    primary ranker through this interface, so the remote oracle can be
    swapped for the deterministic genre scorer (or anything else) without
    touching the engine.
    """

    @abstractmethod
    def rank(
        self,
        liked: list[CatalogItem],
        disliked: list[CatalogItem],
        completed: list[CatalogItem],
        catalog: list[CatalogItem],
        limit: int = DEFAULT_RANK_LIMIT,
    ) -> list[int]:
        """Return up to *limit* item ids, best first.

        Args:
            liked: Items the user currently likes.
            disliked: Items the user currently dislikes.
            completed: Items the user has completed.
            catalog: Candidate items to choose from.
            limit: Maximum number of ids to return.

        Returns:
            Item ids ordered by descending relevance.  Backends are not
            required to check that every id belongs to *catalog*; the
            engine validates the result.
        """
