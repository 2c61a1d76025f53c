"""gRPC servicer: the entry point for all inbound calls from the reading app.

Requests and responses are ``google.protobuf.Struct`` messages, so the
service needs no generated stubs.  :func:`add_recommender_service_to_server`
registers the methods under ``readrec.RecommenderService``.
"""

from __future__ import annotations

import logging
import time
from datetime import datetime, timezone
from typing import Any

import grpc
from google.protobuf import json_format
from google.protobuf.struct_pb2 import Struct

from readrec.engine import RecommendationEngine
from readrec.repository import InMemoryInteractionRepository

logger = logging.getLogger(__name__)

SERVICE_NAME = "readrec.RecommenderService"

_RECOMMENDATION_WARN_THRESHOLD_MS = 2000  # oracle round-trips dominate


class RecommenderServicer:
    """Implements ``readrec.RecommenderService``.

    Args:
        engine: The :class:`~readrec.engine.RecommendationEngine`.
        repository: The :class:`~readrec.repository.InMemoryInteractionRepository`
            that receives recorded interactions.
    """

    def __init__(
        self,
        engine: RecommendationEngine,
        repository: InMemoryInteractionRepository,
    ) -> None:
        self._engine = engine
        self._repository = repository

    # ------------------------------------------------------------------
    # Interaction recording
    # ------------------------------------------------------------------

    def RecordInteraction(self, request: Struct, context: Any) -> Struct:
        """Record that a user liked, disliked or completed an item.

        Expected fields: ``user_id``, ``item_id``, ``kind`` and an optional
        ``timestamp`` in seconds since the epoch.

        Args:
            request: ``Struct`` request message.
            context: gRPC service context.

        Returns:
            An empty ``Struct``.
        """
        fields = json_format.MessageToDict(request)
        try:
            user_id = _require_int(fields, "user_id")
            item_id = _require_int(fields, "item_id")
            timestamp = _optional_timestamp(fields.get("timestamp"))
            self._repository.record(user_id, item_id, fields.get("kind"), timestamp)
        except ValueError as exc:
            context.set_code(grpc.StatusCode.INVALID_ARGUMENT)
            context.set_details(str(exc))
        except Exception:
            logger.exception("Error recording interaction %r", fields)
            context.set_code(grpc.StatusCode.INTERNAL)
            context.set_details("Internal error recording interaction.")
        return Struct()

    # ------------------------------------------------------------------
    # Recommendation request
    # ------------------------------------------------------------------

    def GetRecommendations(self, request: Struct, context: Any) -> Struct:
        """Return the user's recommended item ids.

        Expected fields: ``user_id`` and an optional ``limit``.  The response
        carries ``item_ids``.

        Args:
            request: ``Struct`` request message.
            context: gRPC service context.

        Returns:
            ``Struct`` with an ``item_ids`` list.
        """
        fields = json_format.MessageToDict(request)
        try:
            user_id = _require_int(fields, "user_id")
        except ValueError as exc:
            context.set_code(grpc.StatusCode.INVALID_ARGUMENT)
            context.set_details(str(exc))
            return Struct()
        limit = _coerce_limit(fields.get("limit"))

        start_ms = time.monotonic() * 1000
        try:
            item_ids = self._engine.recommend(user_id, limit)
        except Exception:
            logger.exception(
                "Unexpected error generating recommendations for user=%r", user_id
            )
            context.set_code(grpc.StatusCode.INTERNAL)
            context.set_details("Internal error generating recommendations.")
            return Struct()
        finally:
            elapsed_ms = time.monotonic() * 1000 - start_ms
            if elapsed_ms > _RECOMMENDATION_WARN_THRESHOLD_MS:
                logger.warning(
                    "GetRecommendations for user=%r took %.1fms", user_id, elapsed_ms
                )
            else:
                logger.debug(
                    "GetRecommendations for user=%r took %.1fms", user_id, elapsed_ms
                )

        response = Struct()
        response.update({"item_ids": list(item_ids)})
        return response


def add_recommender_service_to_server(
    servicer: RecommenderServicer, server: grpc.Server
) -> None:
    """Register *servicer*'s methods on *server* under :data:`SERVICE_NAME`."""
    handlers = {
        name: grpc.unary_unary_rpc_method_handler(
            getattr(servicer, name),
            request_deserializer=Struct.FromString,
            response_serializer=Struct.SerializeToString,
        )
        for name in ("GetRecommendations", "RecordInteraction")
    }
    server.add_generic_rpc_handlers(
        (grpc.method_handlers_generic_handler(SERVICE_NAME, handlers),)
    )


# ---------------------------------------------------------------------------
# Field helpers
# ---------------------------------------------------------------------------


def _require_int(fields: dict[str, Any], name: str) -> int:
    """Return ``fields[name]`` as an int.

    Struct numbers arrive as floats, so integral floats are accepted.

    Raises:
        ValueError: If the field is missing or not an integral number.
    """
    value = fields.get(name)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"{name} must be an integer")
    if not float(value).is_integer():
        raise ValueError(f"{name} must be an integer, got {value!r}")
    return int(value)


def _coerce_limit(value: Any) -> int | None:
    """Turn a Struct limit into an int, or ``None`` so the engine uses its default."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if not float(value).is_integer():
        return None
    return int(value)


def _optional_timestamp(value: Any) -> datetime | None:
    """Convert epoch seconds into a UTC-aware ``datetime``.

    Args:
        value: Seconds since the epoch, or ``None``.

    Returns:
        UTC-aware :class:`datetime`, or ``None`` when *value* is ``None``.

    Raises:
        ValueError: If *value* is not a number.
    """
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError("timestamp must be seconds since the epoch")
    return datetime.fromtimestamp(value, tz=timezone.utc)
