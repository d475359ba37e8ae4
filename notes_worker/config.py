import os

DATABASE_URL = os.environ.get("DATABASE_URL", "")
REDIS_URL = os.environ.get("REDIS_URL", "redis://localhost:6379")

DB_POOL_MIN_SIZE = int(os.environ.get("DB_POOL_MIN_SIZE", "2"))
DB_POOL_MAX_SIZE = int(os.environ.get("DB_POOL_MAX_SIZE", "10"))
DB_COMMAND_TIMEOUT = float(os.environ.get("DB_COMMAND_TIMEOUT", "60"))

LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()

WORKER_CONCURRENCY = int(os.environ.get("WORKER_CONCURRENCY", "4"))
MAX_RETRIES = 3
QUEUE_NAME = "finalise:pending"
DEAD_LETTER_QUEUE = "finalise:dead-letter"


def require_database_url() -> str:
    """Return the configured database URL, failing fast when it is missing."""
    if not DATABASE_URL:
        raise RuntimeError("DATABASE_URL environment variable must be set")
    return DATABASE_URL
