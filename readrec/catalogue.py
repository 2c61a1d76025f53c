"""Item catalogue: an in-memory, thread-safe snapshot of the book catalog."""

from __future__ import annotations

import json
import logging
import threading
from collections.abc import Iterable
from pathlib import Path
from typing import Any

from readrec.models import CatalogItem

logger = logging.getLogger(__name__)


class ItemCatalogue:
    """Holds the catalog keyed by item id, in catalog order.

    Catalog order is significant: every ranking tie in the engine is
    broken by it.  All public methods are thread-safe.

    Args:
        items: Initial catalog contents.  Later items replace earlier
            ones with the same id.
    """

    def __init__(self, items: Iterable[CatalogItem] = ()) -> None:
        self._lock = threading.RLock()
        self._items: dict[int, CatalogItem] = {}
        self.replace(items)

    @classmethod
    def from_json_file(cls, path: str | Path) -> "ItemCatalogue":
        """Load a catalogue from a JSON list of item objects.

        Each object needs an ``id`` and may carry ``title``, ``author`` and
        ``genres``.  Malformed entries are skipped with a warning.

        Args:
            path: Path to the JSON file.

        Returns:
            A populated :class:`ItemCatalogue`.

        Raises:
            OSError: If the file cannot be read.
            ValueError: If the file is not a JSON list.
        """
        with open(path, encoding="utf-8") as fh:
            payload = json.load(fh)
        if not isinstance(payload, list):
            raise ValueError(f"Catalog file {path} must contain a JSON list")

        items: list[CatalogItem] = []
        for raw in payload:
            try:
                items.append(_item_from_dict(raw))
            except (KeyError, TypeError, ValueError):
                logger.warning("Skipping malformed catalog entry: %r", raw)
        catalogue = cls(items)
        logger.info("Catalog loaded from %s: %d items.", path, len(catalogue))
        return catalogue

    # ------------------------------------------------------------------
    # Public interface
    # ------------------------------------------------------------------

    def replace(self, items: Iterable[CatalogItem]) -> None:
        """Swap in a new catalog snapshot."""
        new_items = {item.item_id: item for item in items}
        with self._lock:
            self._items = new_items

    def get_all_items(self) -> list[CatalogItem]:
        """Return a snapshot list of all items in catalog order."""
        with self._lock:
            return list(self._items.values())

    def get_item(self, item_id: int) -> CatalogItem | None:
        """Return a single item by id, or ``None`` if not found."""
        with self._lock:
            return self._items.get(item_id)

    def __contains__(self, item_id: object) -> bool:
        with self._lock:
            return item_id in self._items

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)


def _item_from_dict(raw: dict[str, Any]) -> CatalogItem:
    return CatalogItem(
        item_id=int(raw["id"]),
        title=str(raw.get("title") or ""),
        author=str(raw.get("author") or ""),
        genres=str(raw.get("genres") or ""),
    )
