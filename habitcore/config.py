"""Configuration management"""
import os
from dotenv import load_dotenv

load_dotenv()

# Logging
LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

# Storage
# - 'memory' (default): in-process store, state lives for the process lifetime
# - 'redis': JSON blobs in Redis at REDIS_URL
STORE_BACKEND: str = os.getenv("STORE_BACKEND", "memory")
REDIS_URL: str = os.getenv("REDIS_URL", "redis://localhost:6379/0")
STORAGE_KEY_PREFIX: str = os.getenv("STORAGE_KEY_PREFIX", "habitcore")
STORE_SAVE_RETRIES: int = int(os.getenv("STORE_SAVE_RETRIES", "1"))

# Dates
DEFAULT_TIMEZONE: str = os.getenv("DEFAULT_TIMEZONE", "UTC")

# Habit engine
NUDGE_HISTORY_LIMIT: int = int(os.getenv("NUDGE_HISTORY_LIMIT", "50"))
COMPLETION_RATE_WINDOW_DAYS: int = int(os.getenv("COMPLETION_RATE_WINDOW_DAYS", "30"))
TREND_WINDOW_DAYS: int = int(os.getenv("TREND_WINDOW_DAYS", "14"))

# Observability
ENABLE_METRICS: bool = os.getenv("ENABLE_METRICS", "true").lower() == "true"


# Validation
def validate_config() -> None:
    """Validate configuration values"""
    if STORE_BACKEND not in ("memory", "redis"):
        raise ValueError(f"STORE_BACKEND must be 'memory' or 'redis', got '{STORE_BACKEND}'")
    if STORE_BACKEND == "redis" and not REDIS_URL:
        raise ValueError("REDIS_URL is required when STORE_BACKEND is 'redis'")
    if not STORAGE_KEY_PREFIX:
        raise ValueError("STORAGE_KEY_PREFIX is required")
    if STORE_SAVE_RETRIES < 0:
        raise ValueError("STORE_SAVE_RETRIES must not be negative")
    if NUDGE_HISTORY_LIMIT <= 0:
        raise ValueError("NUDGE_HISTORY_LIMIT must be positive")
    if COMPLETION_RATE_WINDOW_DAYS <= 0 or TREND_WINDOW_DAYS <= 0:
        raise ValueError("Window sizes must be positive")
