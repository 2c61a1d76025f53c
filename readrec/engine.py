"""Recommendation engine: resolves one user's picks through the fallback tiers."""

from __future__ import annotations

import logging
import random
from collections.abc import Callable
from concurrent import futures
from dataclasses import dataclass, field

from readrec.models import CatalogItem
from readrec.ranking.base import RankingBackend
from readrec.ranking.genre_scorer import GenreScorer
from readrec.repository import InteractionRepository

logger = logging.getLogger(__name__)

DEFAULT_LIMIT = 8
MAX_LIMIT = 50
DEFAULT_CANDIDATE_POOL_SIZE = 50


@dataclass
class _Snapshot:
    """Everything one request reads from the repository."""

    liked: list[CatalogItem] = field(default_factory=list)
    disliked: list[CatalogItem] = field(default_factory=list)
    completed: list[CatalogItem] = field(default_factory=list)
    eligible: list[CatalogItem] = field(default_factory=list)
    like_counts: dict[int, int] = field(default_factory=dict)

    @property
    def interaction_count(self) -> int:
        return len(self.liked) + len(self.disliked) + len(self.completed)


class RecommendationEngine:
    """Produces an ordered list of item ids for one user.

    Tiers, tried in order until ``limit`` picks are settled:

    =====================  ==============================================
    Tier                   Used when
    =====================  ==============================================
    Primary ranker         the user has at least one interaction
    Genre scorer           the user has at least one interaction
    Popularity             always (items liked by anyone, most liked first)
    Random                 always (uniform sample of what is left)
    =====================  ==============================================

    Every id a tier returns is checked against the user's eligible catalog
    (catalog minus disliked minus completed), so ids the ranker invents
    are dropped.  Items that carry a disliked genre and share no genre
    with the user's liked or completed items are moved behind every other
    pick.

    The engine keeps no per-request state.  Build one and pass it to
    whatever serves requests.

    Args:
        repository: Source of interactions and the eligible catalog.
        ranker: Primary :class:`~readrec.ranking.base.RankingBackend`,
            typically the oracle delegate.
        scorer: Deterministic :class:`~readrec.ranking.genre_scorer.GenreScorer`
            used to fill what the ranker leaves empty.
        candidate_pool_size: Maximum number of eligible items offered to
            the primary ranker.  Never smaller than the request limit.  The
            genre scorer always ranks the whole eligible catalog.
        default_limit: Limit used when the caller's is missing or invalid.
        max_limit: Upper bound on any request's limit.
    """

    def __init__(
        self,
        repository: InteractionRepository,
        ranker: RankingBackend,
        scorer: GenreScorer,
        candidate_pool_size: int = DEFAULT_CANDIDATE_POOL_SIZE,
        default_limit: int = DEFAULT_LIMIT,
        max_limit: int = MAX_LIMIT,
    ) -> None:
        self._repository = repository
        self._ranker = ranker
        self._scorer = scorer
        self._candidate_pool_size = candidate_pool_size
        self._default_limit = default_limit
        self._max_limit = max_limit

    def recommend(self, user_id: int, limit: int | None = None) -> list[int]:
        """Return up to *limit* item ids for *user_id*, best first.

        Never raises.  The result holds ``min(limit, eligible catalog size)``
        distinct ids; it is empty only when nothing is eligible.

        Args:
            user_id: The user requesting recommendations.
            limit: Requested number of ids.  Missing, non-integer or
                non-positive values fall back to the default; larger values
                are capped.

        Returns:
            List of item ids.
        """
        limit = self.clamp_limit(limit)
        picks = _Picks()
        try:
            snapshot = self._read_snapshot(user_id)
            picks.configure(snapshot)
            logger.info(
                "User %r: %d liked, %d disliked, %d completed, %d eligible",
                user_id,
                len(snapshot.liked),
                len(snapshot.disliked),
                len(snapshot.completed),
                len(snapshot.eligible),
            )

            for tier, produce in self._tiers(snapshot, limit):
                if picks.settled(limit):
                    break
                try:
                    ids = produce()
                except Exception:
                    logger.exception("Tier %r failed for user %r", tier, user_id)
                    continue
                added = picks.extend(ids)
                logger.debug("Tier %r added %d picks for user %r", tier, added, user_id)
                if tier == "ranker" and added == 0:
                    logger.info(
                        "Primary ranker returned nothing usable for user %r; "
                        "falling back to genre scorer",
                        user_id,
                    )
        except Exception:
            logger.exception("Unexpected error recommending for user %r", user_id)

        result = picks.ordered()[:limit]
        logger.debug("Recommendations for user %r: %s", user_id, result)
        return result

    def clamp_limit(self, limit: object) -> int:
        """Coerce a caller-supplied limit into ``[1, max_limit]``."""
        if isinstance(limit, bool) or not isinstance(limit, int) or limit <= 0:
            return self._default_limit
        return min(limit, self._max_limit)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _read_snapshot(self, user_id: int) -> _Snapshot:
        """Issue all repository reads concurrently; a failed read is empty."""
        repo = self._repository
        queries: dict[str, Callable[[], object]] = {
            "liked": lambda: repo.liked_items(user_id),
            "disliked": lambda: repo.disliked_items(user_id),
            "completed": lambda: repo.completed_items(user_id),
            "eligible": lambda: repo.eligible_catalog(user_id),
            "like_counts": repo.like_counts,
        }
        snapshot = _Snapshot()
        with futures.ThreadPoolExecutor(max_workers=len(queries)) as pool:
            pending = {name: pool.submit(query) for name, query in queries.items()}
            for name, future in pending.items():
                try:
                    value = future.result()
                except Exception:
                    logger.exception("Repository query %r failed for user %r", name, user_id)
                    continue
                if value is not None:
                    setattr(snapshot, name, value)
        return snapshot

    def _tiers(
        self, snapshot: _Snapshot, limit: int
    ) -> list[tuple[str, Callable[[], list[int]]]]:
        """Return the ``(name, producer)`` pairs that apply to *snapshot*."""
        pool = snapshot.eligible[: max(self._candidate_pool_size, limit)]
        eligible = snapshot.eligible
        tiers: list[tuple[str, Callable[[], list[int]]]] = []

        if snapshot.interaction_count >= 1:
            tiers.append((
                "ranker",
                lambda: self._ranker.rank(
                    snapshot.liked, snapshot.disliked, snapshot.completed, pool, limit
                ),
            ))
            # the scorer ranks the whole eligible catalog so no later tier
            # has to fill in random order
            tiers.append((
                "genre_scorer",
                lambda: self._scorer.rank(
                    snapshot.liked, snapshot.disliked, snapshot.completed,
                    eligible, len(eligible),
                ),
            ))

        tiers.append(("popularity", lambda: _popular_ids(snapshot)))
        tiers.append(("random", lambda: _random_ids(snapshot.eligible)))
        return tiers


class _Picks:
    """Ordered, de-duplicated, validated picks for one request."""

    def __init__(self) -> None:
        self._eligible: dict[int, CatalogItem] = {}
        self._liked_genres: set[str] = set()
        self._disliked_genres: set[str] = set()
        self._clear: list[int] = []
        self._conflicting: list[int] = []
        self._seen: set[int] = set()

    def configure(self, snapshot: _Snapshot) -> None:
        self._eligible = {item.item_id: item for item in snapshot.eligible}
        self._liked_genres = {
            g for item in snapshot.liked + snapshot.completed
            for g in item.genre_tokens
        }
        self._disliked_genres = {
            g for item in snapshot.disliked for g in item.genre_tokens
        }

    def extend(self, ids: list[int]) -> int:
        """Add eligible, unseen ids in order; return how many were added."""
        added = 0
        for item_id in ids:
            item = self._eligible.get(item_id)
            if item is None or item_id in self._seen:
                continue
            self._seen.add(item_id)
            if self._conflicts(item):
                self._conflicting.append(item_id)
            else:
                self._clear.append(item_id)
            added += 1
        return added

    def settled(self, limit: int) -> bool:
        """True once later tiers can no longer change the first *limit* picks."""
        return len(self._clear) >= limit or len(self._seen) >= len(self._eligible)

    def ordered(self) -> list[int]:
        return self._clear + self._conflicting

    def _conflicts(self, item: CatalogItem) -> bool:
        genres = set(item.genre_tokens)
        return bool(genres & self._disliked_genres) and not genres & self._liked_genres


def _popular_ids(snapshot: _Snapshot) -> list[int]:
    """Eligible items liked by at least one user, most liked first."""
    counts = snapshot.like_counts
    liked = [item for item in snapshot.eligible if counts.get(item.item_id, 0) > 0]
    liked.sort(key=lambda item: counts[item.item_id], reverse=True)
    return [item.item_id for item in liked]


def _random_ids(eligible: list[CatalogItem]) -> list[int]:
    """Every eligible item id, in uniformly random order."""
    return [item.item_id for item in random.sample(eligible, len(eligible))]
