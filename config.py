"""Application configuration driven by environment variables.

All settings have sensible defaults for local development.  The oracle
API key has no default; without one the engine ranks with the genre
scorer only.
"""

import os

# ---------------------------------------------------------------------------
# gRPC server (the reading app connects to us on this address)
# ---------------------------------------------------------------------------

GRPC_SERVER_HOST: str = os.getenv("GRPC_SERVER_HOST", "0.0.0.0")
GRPC_SERVER_PORT: int = int(os.getenv("GRPC_SERVER_PORT", "50051"))

# Thread pool size for the gRPC server.  Each concurrent RPC occupies one
# thread, so this caps concurrent request handling.
GRPC_MAX_WORKERS: int = int(os.getenv("GRPC_MAX_WORKERS", "10"))

# ---------------------------------------------------------------------------
# Catalog
# ---------------------------------------------------------------------------

# JSON list of {"id", "title", "author", "genres"} objects.
CATALOG_PATH: str = os.getenv("CATALOG_PATH", "catalog.json")

# ---------------------------------------------------------------------------
# Ranking oracle (OpenAI-compatible chat completions endpoint)
# ---------------------------------------------------------------------------

ORACLE_BASE_URL: str = os.getenv("ORACLE_BASE_URL", "https://api.sambanova.ai/v1")
ORACLE_API_KEY: str = os.getenv("ORACLE_API_KEY", "")
ORACLE_MODEL: str = os.getenv("ORACLE_MODEL", "DeepSeek-V3-0324")
ORACLE_TIMEOUT_SECONDS: float = float(os.getenv("ORACLE_TIMEOUT_SECONDS", "15"))
ORACLE_TEMPERATURE: float = float(os.getenv("ORACLE_TEMPERATURE", "0.7"))
ORACLE_MAX_TOKENS: int = int(os.getenv("ORACLE_MAX_TOKENS", "500"))

# ---------------------------------------------------------------------------
# Recommendation engine
# ---------------------------------------------------------------------------

DEFAULT_RECOMMENDATIONS: int = 8   # used when the caller's limit is missing or invalid
MAX_RECOMMENDATIONS: int = 50      # hard cap on a single request

# Number of eligible items offered to the ranking oracle per request.
CANDIDATE_POOL_SIZE: int = int(os.getenv("CANDIDATE_POOL_SIZE", "50"))

# Most recent liked / disliked / completed items considered per user.
INTERACTION_HISTORY_LIMIT: int = int(os.getenv("INTERACTION_HISTORY_LIMIT", "20"))

# Multiplier on liked-genre affinity weights in the genre scorer.
GENRE_AFFINITY_SCALE: float = float(os.getenv("GENRE_AFFINITY_SCALE", "1"))
