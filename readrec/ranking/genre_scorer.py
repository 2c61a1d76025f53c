"""Deterministic genre-affinity scorer."""

from __future__ import annotations

import logging

import numpy as np

from readrec.models import CatalogItem, tokenize_genres
from readrec.ranking.base import DEFAULT_RANK_LIMIT, RankingBackend

logger = logging.getLogger(__name__)

DISLIKED_GENRE_PENALTY = 10.0
DISLIKED_ITEM_SENTINEL = -1000.0


class GenreScorer(RankingBackend):
    """Scores candidates by how their genres overlap the user's taste.

    Liked genres are ranked by how often they occur across the liked
    items (ties keep first-seen order).  With ``N`` distinct liked genres
    the genre at rank index ``i`` carries an affinity weight of ``N - i``,
    so the most frequent genre weighs the most.

    A candidate's score is::

        affinity_scale * sum(weight(g) for g in shared liked genres)
        - 10 * (number of shared disliked genres)

    Candidates that *are* disliked items get a sentinel score of ``-1000``
    and are never returned.  A candidate with a disliked genre and no liked
    genre is ranked behind every candidate without that conflict, whatever
    the scores.  Sorting is stable, so equal scores keep catalog order.

    Args:
        affinity_scale: Multiplier on liked-genre weights.
    """

    def __init__(self, affinity_scale: float = 1.0) -> None:
        self._affinity_scale = float(affinity_scale)

    # ------------------------------------------------------------------
    # Public interface
    # ------------------------------------------------------------------

    def score(
        self,
        liked: list[CatalogItem],
        disliked: list[CatalogItem],
        candidates: list[CatalogItem],
        limit: int = DEFAULT_RANK_LIMIT,
    ) -> list[int]:
        """Return up to *limit* candidate ids, best first.

        Positive-score candidates come first.  If fewer than *limit* score
        above zero, the list is padded with the next-highest candidates
        regardless of sign.

        With no liked and no disliked items there is nothing to rank on,
        and the candidates come back in input order.

        Args:
            liked: Items carrying positive taste signal.
            disliked: Items the user disliked.
            candidates: Items to rank.
            limit: Maximum number of ids to return.

        Returns:
            List of up to *limit* item ids.
        """
        if limit <= 0 or not candidates:
            return []
        if not liked and not disliked:
            return [item.item_id for item in candidates[:limit]]

        scores = self.score_vector(liked, disliked, candidates)
        conflicts = self._conflict_mask(liked, disliked, candidates)
        # lexsort is stable; its last key is the primary one
        order = np.lexsort((-scores, conflicts))
        ranked = [
            candidates[i].item_id
            for i in order
            if scores[i] > DISLIKED_ITEM_SENTINEL
        ]
        logger.debug(
            "Genre scorer ranked %d candidates (%d positive)",
            len(ranked),
            int(np.count_nonzero(scores > 0)),
        )
        return ranked[:limit]

    def score_vector(
        self,
        liked: list[CatalogItem],
        disliked: list[CatalogItem],
        candidates: list[CatalogItem],
    ) -> np.ndarray:
        """Return the raw score of each candidate, aligned with *candidates*."""
        affinity = self.genre_affinity(liked)
        disliked_genres = {g for item in disliked for g in tokenize_genres(item.genres)}
        disliked_ids = {item.item_id for item in disliked}

        genre_index = {g: i for i, g in enumerate(affinity)}
        for genre in sorted(disliked_genres):
            genre_index.setdefault(genre, len(genre_index))

        weights = np.zeros(len(genre_index), dtype=np.float64)
        for genre, weight in affinity.items():
            weights[genre_index[genre]] = weight * self._affinity_scale
        for genre in disliked_genres:
            weights[genre_index[genre]] -= DISLIKED_GENRE_PENALTY

        scores = np.zeros(len(candidates), dtype=np.float64)
        for row, item in enumerate(candidates):
            if item.item_id in disliked_ids:
                scores[row] = DISLIKED_ITEM_SENTINEL
                continue
            scores[row] = np.dot(weights, self._build_item_vector(item, genre_index))
        return scores

    @staticmethod
    def genre_affinity(liked: list[CatalogItem]) -> dict[str, int]:
        """Map each liked genre to its affinity weight, heaviest first.

        >>> GenreScorer.genre_affinity([CatalogItem(1, "", "", "a, b"),
        ...                             CatalogItem(2, "", "", "b")])
        {'b': 2, 'a': 1}
        """
        frequency: dict[str, int] = {}
        for item in liked:
            for genre in tokenize_genres(item.genres):
                frequency[genre] = frequency.get(genre, 0) + 1
        # dicts keep first-seen order and sorted() is stable
        preference = sorted(frequency, key=lambda g: frequency[g], reverse=True)
        n = len(preference)
        return {genre: n - rank for rank, genre in enumerate(preference)}

    def rank(
        self,
        liked: list[CatalogItem],
        disliked: list[CatalogItem],
        completed: list[CatalogItem],
        catalog: list[CatalogItem],
        limit: int = DEFAULT_RANK_LIMIT,
    ) -> list[int]:
        """Rank *catalog* with completed items counted as liked."""
        return self.score(list(liked) + list(completed), disliked, catalog, limit)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _conflict_mask(
        liked: list[CatalogItem],
        disliked: list[CatalogItem],
        candidates: list[CatalogItem],
    ) -> np.ndarray:
        """Flag candidates with a disliked genre and no liked genre."""
        liked_genres = {g for item in liked for g in tokenize_genres(item.genres)}
        disliked_genres = {g for item in disliked for g in tokenize_genres(item.genres)}
        mask = np.zeros(len(candidates), dtype=np.int8)
        for row, item in enumerate(candidates):
            genres = set(tokenize_genres(item.genres))
            if genres & disliked_genres and not genres & liked_genres:
                mask[row] = 1
        return mask

    @staticmethod
    def _build_item_vector(item: CatalogItem, genre_index: dict[str, int]) -> np.ndarray:
        """Convert an item's genres into a binary indicator vector."""
        vec = np.zeros(len(genre_index), dtype=np.float64)
        for genre in tokenize_genres(item.genres):
            if genre in genre_index:
                vec[genre_index[genre]] = 1.0
        return vec
