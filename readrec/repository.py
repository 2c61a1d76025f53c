"""Interaction repository: read-only queries the engine runs per request.

:class:`InteractionRepository` is the data-access seam between the engine
and whatever owns interaction storage.  :class:`InMemoryInteractionRepository`
is the in-process implementation used by the service entry point and the
tests: an append-only interaction log plus a derived "current status"
projection holding the latest record per ``(user, item)`` pair.
"""

from __future__ import annotations

import logging
import threading
from abc import ABC, abstractmethod
from collections import Counter
from datetime import datetime, timezone

from readrec.catalogue import ItemCatalogue
from readrec.models import CatalogItem, InteractionKind, InteractionRecord

logger = logging.getLogger(__name__)

# Kinds that remove an item from a user's eligible catalog.
_EXCLUDING_KINDS = frozenset({InteractionKind.DISLIKED, InteractionKind.COMPLETED})


class InteractionRepository(ABC):
    """Read-only queries over one user's interactions and the catalog.

    Implementations return de-duplicated, latest-only interactions: an item
    appears in at most one of the liked / disliked / completed lists for a
    given user.  Any method may raise; the engine treats a failed query as
    an empty result.
    """

    @abstractmethod
    def liked_items(self, user_id: int) -> list[CatalogItem]:
        """Return items the user currently likes, most recent first."""

    @abstractmethod
    def disliked_items(self, user_id: int) -> list[CatalogItem]:
        """Return items the user currently dislikes, most recent first."""

    @abstractmethod
    def completed_items(self, user_id: int) -> list[CatalogItem]:
        """Return items the user has completed, most recent first."""

    @abstractmethod
    def eligible_catalog(self, user_id: int) -> list[CatalogItem]:
        """Return the catalog minus the user's disliked and completed items.

        Order is stable across calls when the underlying data is unchanged.
        """

    @abstractmethod
    def like_counts(self) -> dict[int, int]:
        """Return the number of users currently liking each item.

        Items nobody likes may be omitted.
        """


class InMemoryInteractionRepository(InteractionRepository):
    """Thread-safe in-memory interaction store.

    Every recorded interaction is appended to the log and never mutated.
    The current-status projection is updated alongside; a record older
    than the active one for the same pair is logged but does not change
    the projection.

    Args:
        catalogue: The :class:`~readrec.catalogue.ItemCatalogue` used to
            resolve item ids into :class:`~readrec.models.CatalogItem`.
        history_limit: Maximum number of items returned by each of the
            liked / disliked / completed queries.  ``None`` means no limit.
    """

    def __init__(
        self, catalogue: ItemCatalogue, history_limit: int | None = 20
    ) -> None:
        self._catalogue = catalogue
        self._history_limit = history_limit
        self._lock = threading.RLock()
        self._log: list[InteractionRecord] = []
        self._current: dict[tuple[int, int], InteractionRecord] = {}

    # ------------------------------------------------------------------
    # Recording
    # ------------------------------------------------------------------

    def record(
        self,
        user_id: int,
        item_id: int,
        kind: InteractionKind | str,
        timestamp: datetime | None = None,
    ) -> InteractionRecord:
        """Append an interaction to the log and update the projection.

        Args:
            user_id: The interacting user.
            item_id: The item involved.  Must exist in the catalogue.
            kind: An :class:`~readrec.models.InteractionKind` or its value.
            timestamp: When it happened; defaults to now (UTC).  Naive
                datetimes are assumed UTC.

        Returns:
            The appended :class:`~readrec.models.InteractionRecord`.

        Raises:
            ValueError: If *kind* is unknown or *item_id* is not in the
                catalogue.
        """
        kind = InteractionKind(kind)
        if item_id not in self._catalogue:
            raise ValueError(f"Unknown item id {item_id!r}")
        if timestamp is None:
            timestamp = datetime.now(timezone.utc)
        elif timestamp.tzinfo is None:
            timestamp = timestamp.replace(tzinfo=timezone.utc)

        record = InteractionRecord(
            user_id=user_id, item_id=item_id, kind=kind, timestamp=timestamp
        )
        with self._lock:
            self._log.append(record)
            self._apply(record)
        return record

    def load(self, records: list[InteractionRecord]) -> None:
        """Replay previously persisted records into the store."""
        with self._lock:
            for record in records:
                self._log.append(record)
                self._apply(record)
        logger.info("Replayed %d interaction records.", len(records))

    def history(self, user_id: int) -> list[InteractionRecord]:
        """Return every logged record for *user_id*, in append order."""
        with self._lock:
            return [r for r in self._log if r.user_id == user_id]

    # ------------------------------------------------------------------
    # InteractionRepository queries
    # ------------------------------------------------------------------

    def liked_items(self, user_id: int) -> list[CatalogItem]:
        return self._items_with_kind(user_id, InteractionKind.LIKED)

    def disliked_items(self, user_id: int) -> list[CatalogItem]:
        return self._items_with_kind(user_id, InteractionKind.DISLIKED)

    def completed_items(self, user_id: int) -> list[CatalogItem]:
        return self._items_with_kind(user_id, InteractionKind.COMPLETED)

    def eligible_catalog(self, user_id: int) -> list[CatalogItem]:
        with self._lock:
            excluded = {
                item_id
                for (uid, item_id), record in self._current.items()
                if uid == user_id and record.kind in _EXCLUDING_KINDS
            }
        return [
            item for item in self._catalogue.get_all_items()
            if item.item_id not in excluded
        ]

    def like_counts(self) -> dict[int, int]:
        with self._lock:
            counts = Counter(
                item_id
                for (_, item_id), record in self._current.items()
                if record.kind == InteractionKind.LIKED
            )
        return dict(counts)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _apply(self, record: InteractionRecord) -> None:
        """Fold *record* into the current-status projection."""
        key = (record.user_id, record.item_id)
        active = self._current.get(key)
        if active is not None and record.timestamp < active.timestamp:
            logger.debug(
                "Ignoring stale %s record for user=%r item=%r",
                record.kind.value,
                record.user_id,
                record.item_id,
            )
            return
        self._current[key] = record

    def _items_with_kind(
        self, user_id: int, kind: InteractionKind
    ) -> list[CatalogItem]:
        with self._lock:
            records = [
                r for (uid, _), r in self._current.items()
                if uid == user_id and r.kind == kind
            ]
        records.sort(key=lambda r: r.timestamp, reverse=True)
        if self._history_limit is not None:
            records = records[: self._history_limit]

        items: list[CatalogItem] = []
        for record in records:
            item = self._catalogue.get_item(record.item_id)
            if item is not None:
                items.append(item)
        return items
