"""Entry point: wires all components and starts the gRPC server."""

from __future__ import annotations

import logging
import signal
import sys
from concurrent import futures

import grpc

import config
from readrec.catalogue import ItemCatalogue
from readrec.engine import RecommendationEngine
from readrec.ranking.genre_scorer import GenreScorer
from readrec.ranking.oracle import OracleRankingDelegate
from readrec.repository import InMemoryInteractionRepository
from readrec.service import RecommenderServicer, add_recommender_service_to_server

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


def build_engine(
    repository: InMemoryInteractionRepository,
) -> tuple[RecommendationEngine, OracleRankingDelegate]:
    """Construct the engine and its oracle delegate from :mod:`config`.

    Args:
        repository: The interaction repository the engine reads from.

    Returns:
        ``(engine, delegate)``.  The caller owns the delegate and should
        :meth:`~readrec.ranking.oracle.OracleRankingDelegate.close` it on
        shutdown.
    """
    scorer = GenreScorer(affinity_scale=config.GENRE_AFFINITY_SCALE)
    delegate = OracleRankingDelegate(
        fallback=scorer,
        base_url=config.ORACLE_BASE_URL,
        api_key=config.ORACLE_API_KEY,
        model=config.ORACLE_MODEL,
        timeout=config.ORACLE_TIMEOUT_SECONDS,
        temperature=config.ORACLE_TEMPERATURE,
        max_tokens=config.ORACLE_MAX_TOKENS,
    )
    engine = RecommendationEngine(
        repository=repository,
        ranker=delegate,
        scorer=scorer,
        candidate_pool_size=config.CANDIDATE_POOL_SIZE,
        default_limit=config.DEFAULT_RECOMMENDATIONS,
        max_limit=config.MAX_RECOMMENDATIONS,
    )
    return engine, delegate


def build_server(
    engine: RecommendationEngine,
    repository: InMemoryInteractionRepository,
) -> grpc.Server:
    """Construct and configure the gRPC server with all dependencies wired.

    Args:
        engine: The :class:`~readrec.engine.RecommendationEngine`.
        repository: The repository that receives recorded interactions.

    Returns:
        A configured but not-yet-started :class:`grpc.Server`.
    """
    servicer = RecommenderServicer(engine=engine, repository=repository)

    server = grpc.server(
        futures.ThreadPoolExecutor(max_workers=config.GRPC_MAX_WORKERS)
    )
    add_recommender_service_to_server(servicer, server)
    server.add_insecure_port(
        f"{config.GRPC_SERVER_HOST}:{config.GRPC_SERVER_PORT}"
    )
    return server


def main() -> None:
    """Initialise all components and start the gRPC server.

    Startup sequence:
    1. Load the catalog from ``CATALOG_PATH``.
    2. Create the in-memory interaction repository.
    3. Build the engine and its oracle delegate.
    4. Register ``SIGTERM``/``SIGINT`` shutdown handlers.
    5. Build and start the gRPC server.
    """
    logger.info("Loading catalog from %s…", config.CATALOG_PATH)
    catalogue = ItemCatalogue.from_json_file(config.CATALOG_PATH)

    repository = InMemoryInteractionRepository(
        catalogue, history_limit=config.INTERACTION_HISTORY_LIMIT
    )
    engine, delegate = build_engine(repository)
    if not config.ORACLE_API_KEY:
        logger.warning("ORACLE_API_KEY is not set; ranking with the genre scorer only.")

    server = build_server(engine, repository)

    def handle_shutdown(signum: int, frame: object) -> None:
        sig_name = signal.Signals(signum).name
        logger.info("Received %s, shutting down", sig_name)
        server.stop(grace=5)
        delegate.close()
        sys.exit(0)

    signal.signal(signal.SIGTERM, handle_shutdown)
    signal.signal(signal.SIGINT, handle_shutdown)

    server.start()
    logger.info(
        "Recommender gRPC server listening on %s:%d",
        config.GRPC_SERVER_HOST,
        config.GRPC_SERVER_PORT,
    )
    server.wait_for_termination()


if __name__ == "__main__":
    main()
