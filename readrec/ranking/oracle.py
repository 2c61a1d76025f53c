"""Ranking delegate backed by a remote natural-language oracle."""

from __future__ import annotations

import logging
import re
import threading
from typing import Any

import httpx

from readrec.models import CatalogItem
from readrec.ranking.base import DEFAULT_RANK_LIMIT, RankingBackend
from readrec.ranking.genre_scorer import GenreScorer
from readrec.ranking.prompts import RANK_BOOKS, render_ranking_prompt

logger = logging.getLogger(__name__)

_ID_PATTERN = re.compile(r"\b\d+\b")


class OracleRankingDelegate(RankingBackend):
    """Ranks candidates by asking an OpenAI-compatible chat endpoint.

    One synchronous ``POST {base_url}/chat/completions`` is issued per
    :meth:`rank` call, with no retry.  A transport error, timeout, non-2xx
    status or unexpected response body never reaches the caller: the
    delegate answers with the *fallback* scorer's ranking over the same
    inputs instead.

    The underlying :class:`httpx.Client` is created on first use and then
    shared.  It only carries read-only configuration (base URL, credential,
    timeout), so concurrent requests may use it.

    Args:
        fallback: Scorer used whenever the oracle cannot answer.
        base_url: API root, e.g. ``"https://api.example.com/v1"``.
        api_key: Bearer credential.  When empty no request is made and
            the fallback ranking is returned.
        model: Model name sent with every request.
        timeout: Request timeout in seconds.
        temperature: Sampling temperature.
        max_tokens: Maximum completion tokens.
        transport: Optional :class:`httpx.BaseTransport`, mainly for tests.
    """

    def __init__(
        self,
        fallback: GenreScorer,
        base_url: str,
        api_key: str,
        model: str,
        timeout: float = 15.0,
        temperature: float = 0.7,
        max_tokens: int = 500,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._fallback = fallback
        self._base_url = base_url.rstrip("/")
        self._api_key = api_key
        self._model = model
        self._timeout = timeout
        self._temperature = temperature
        self._max_tokens = max_tokens
        self._transport = transport
        self._client: httpx.Client | None = None
        self._client_lock = threading.Lock()

    # ------------------------------------------------------------------
    # Public interface
    # ------------------------------------------------------------------

    def rank(
        self,
        liked: list[CatalogItem],
        disliked: list[CatalogItem],
        completed: list[CatalogItem],
        catalog: list[CatalogItem],
        limit: int = DEFAULT_RANK_LIMIT,
    ) -> list[int]:
        """Return up to *limit* ids chosen by the oracle, in emitted order.

        Returns an empty list without any network call when there are no
        interactions and no catalog.  A reply that contains no usable ids
        also yields an empty list.
        """
        if not liked and not disliked and not completed and not catalog:
            return []
        if not self._api_key:
            logger.debug("No oracle API key configured; using genre scorer")
            return self._fallback.rank(liked, disliked, completed, catalog, limit)

        prompt = render_ranking_prompt(liked, disliked, completed, catalog, limit)
        try:
            content = self._complete(prompt["system"], prompt["user"])
        except httpx.HTTPError as exc:
            logger.warning("Ranking oracle request failed: %s; using genre scorer", exc)
            return self._fallback.rank(liked, disliked, completed, catalog, limit)
        except (ValueError, KeyError, IndexError, TypeError) as exc:
            logger.warning("Ranking oracle returned an unexpected body: %r; using genre scorer", exc)
            return self._fallback.rank(liked, disliked, completed, catalog, limit)

        ids = parse_ranked_ids(content, limit)
        logger.debug("Ranking oracle returned %d ids: %s", len(ids), ids)
        return ids

    def close(self) -> None:
        """Close the shared HTTP client, if one was created."""
        with self._client_lock:
            if self._client is not None:
                self._client.close()
                self._client = None

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _get_client(self) -> httpx.Client:
        with self._client_lock:
            if self._client is None:
                self._client = httpx.Client(
                    base_url=self._base_url,
                    headers={"Authorization": f"Bearer {self._api_key}"},
                    timeout=self._timeout,
                    transport=self._transport,
                )
            return self._client

    def _complete(self, system: str, user: str) -> str:
        """Send one chat completion request and return the reply text."""
        payload: dict[str, Any] = {
            "model": self._model,
            "messages": [
                {"role": "system", "content": system},
                {"role": "user", "content": user},
            ],
            "temperature": self._temperature,
            "max_tokens": self._max_tokens,
        }
        logger.info(
            "Oracle request: model=%s, prompt=%s v%s",
            self._model,
            RANK_BOOKS.name,
            RANK_BOOKS.version,
        )
        resp = self._get_client().post("/chat/completions", json=payload)
        resp.raise_for_status()
        content = resp.json()["choices"][0]["message"]["content"]
        if content is None:
            return ""
        if not isinstance(content, str):
            raise TypeError(f"message content is {type(content).__name__}, not str")
        return content


def parse_ranked_ids(content: str, limit: int = DEFAULT_RANK_LIMIT) -> list[int]:
    """Extract item ids from free text, keeping the order they appear in.

    Every standalone run of digits is read as an id; zero is dropped.

    >>> parse_ranked_ids("15, 7 and 0, then 23", 2)
    [15, 7]
    """
    ids = [int(token) for token in _ID_PATTERN.findall(content or "")]
    return [i for i in ids if i > 0][:limit]
