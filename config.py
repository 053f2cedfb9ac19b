import os
import yaml

ROOT_PATH = os.path.dirname(__file__)
CONFIG_FILE_PATH = os.path.join(ROOT_PATH, "env.yaml")

if os.path.exists(CONFIG_FILE_PATH):
    with open(CONFIG_FILE_PATH, "r") as r_file:
        data = yaml.safe_load(r_file) or dict()
else:
    data = dict()


class ApplicationConfig:
    DB_URI = data.get("DB_URI", "sqlite+aiosqlite:///./renamer.db")
    API_PREFIX = data.get("API_PREFIX", "/api")
    API_PORT = data.get("API_PORT", 8000)
    API_HOST = data.get("API_HOST", "0.0.0.0")
    CORS_ORIGINS = data.get("CORS_ORIGINS", [])
    CORS_ALLOW_CREDENTIALS = data.get("CORS_ALLOW_CREDENTIALS", True)
    LOG_LEVEL = data.get("LOG_LEVEL", "INFO")
    DEBUG = bool(data.get("DEBUG", False))
    ENABLE_SENTRY = data.get("ENABLE_SENTRY", 0)
    DSN_SENTRY = data.get("DSN_SENTRY", "")
    SENTRY_ENVIRONMENT = data.get("SENTRY_ENVIRONMENT", "dev")

    # Name generation service
    AI_ENABLED = bool(data.get("AI_ENABLED", True))
    AI_API_KEY = data.get("AI_API_KEY", "")
    AI_API_ENDPOINT = data.get("AI_API_ENDPOINT", "https://api.example.com/v1/generate-names")
    AI_TIMEOUT = data.get("AI_TIMEOUT", 30)  # Seconds
    AI_MAX_RETRIES = data.get("AI_MAX_RETRIES", 2)
    AI_PROMPT_TEMPLATE = data.get("AI_PROMPT_TEMPLATE", None)

    # Remote credit settlement
    SETTLEMENT_ENABLED = bool(data.get("SETTLEMENT_ENABLED", False))
    SETTLEMENT_API_KEY = data.get("SETTLEMENT_API_KEY", "")
    SETTLEMENT_API_ENDPOINT = data.get("SETTLEMENT_API_ENDPOINT", "")
    SETTLEMENT_TIMEOUT = data.get("SETTLEMENT_TIMEOUT", 20)  # Seconds

    # Credits
    FREE_CREDITS_AMOUNT = data.get("FREE_CREDITS_AMOUNT", 5)
    FREE_CREDITS_MIN_ACCOUNT_AGE_SECONDS = data.get("FREE_CREDITS_MIN_ACCOUNT_AGE_SECONDS", 3600)
    MAX_TRANSACTIONS = data.get("MAX_TRANSACTIONS", 100)  # Per account
    CREDITS_PER_RENAME = data.get("CREDITS_PER_RENAME", 1)

    # Rename
    HISTORY_MAX_ENTRIES = data.get("HISTORY_MAX_ENTRIES", 5)  # Per resource
    BULK_MAX_ITEMS = data.get("BULK_MAX_ITEMS", 50)

    # Cache
    CACHE_ENABLED = bool(data.get("CACHE_ENABLED", True))
    CACHE_TTL_CONTENT_ANALYSIS = data.get("CACHE_TTL_CONTENT_ANALYSIS", 7200)
    CACHE_TTL_CONTEXT = data.get("CACHE_TTL_CONTEXT", 3600)
    CACHE_TTL_SUGGESTIONS = data.get("CACHE_TTL_SUGGESTIONS", 1800)
    CACHE_MEMORY_MAX_ENTRIES = data.get("CACHE_MEMORY_MAX_ENTRIES", 1000)  # Per process

    # Rate limits: {operation: {"requests": N, "window": seconds}}, merged over the defaults
    RATE_LIMITS = data.get("RATE_LIMITS", {})

    # Maintenance worker
    MAINTENANCE_INTERVAL_SECONDS = data.get("MAINTENANCE_INTERVAL_SECONDS", 86400)  # Daily
    MAINTENANCE_TRANSACTION_RETENTION_DAYS = data.get("MAINTENANCE_TRANSACTION_RETENTION_DAYS", 90)
    MAINTENANCE_AUDIT_RETENTION_DAYS = data.get("MAINTENANCE_AUDIT_RETENTION_DAYS", 30)

    # Settlement reconciliation worker
    RECONCILIATION_ENABLED = bool(data.get("RECONCILIATION_ENABLED", True))
    RECONCILIATION_INTERVAL_SECONDS = data.get("RECONCILIATION_INTERVAL_SECONDS", 900)
    RECONCILIATION_STALE_AFTER_SECONDS = data.get("RECONCILIATION_STALE_AFTER_SECONDS", 300)
