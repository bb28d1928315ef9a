"""Application settings."""

import os
from pathlib import Path

# Database
DB_PATH = os.getenv("SYNC_DB_PATH", "sync.duckdb")
ANALYTICS_DB_PATH = os.getenv("SYNC_ANALYTICS_DB_PATH", DB_PATH)

# Logging
LOG_DIR = Path(os.getenv("SYNC_LOG_DIR", "logs"))

# Cache
REDIS_URL = os.getenv("REDIS_URL", "redis://localhost:6379")
CACHE_LOCK_TTL = int(os.getenv("CACHE_LOCK_TTL", "10"))
CACHE_LOCK_WAIT = float(os.getenv("CACHE_LOCK_WAIT", "5.0"))

# Search
MEILISEARCH_URL = os.getenv("MEILISEARCH_URL", "http://localhost:7700")
MEILISEARCH_API_KEY = os.getenv("MEILISEARCH_API_KEY", "")
MEILISEARCH_TIMEOUT = 60
SEARCH_BATCH_SIZE = 500

# Jobs (seconds)
METRIC_UPDATE_INTERVAL = int(os.getenv("METRIC_UPDATE_INTERVAL", "60"))
RANK_REFRESH_INTERVAL = int(os.getenv("RANK_REFRESH_INTERVAL", "3600"))
SEARCH_UPDATE_INTERVAL = int(os.getenv("SEARCH_UPDATE_INTERVAL", "30"))

# Concurrency
MAX_CONCURRENT = 10
