import os
from dotenv import load_dotenv

load_dotenv()


def _require_env(key: str) -> str:
    value = os.getenv(key)
    if not value:
        raise RuntimeError(f"Missing required environment variable: {key}")
    return value


def _env_flag(key: str, default: bool) -> bool:
    value = os.getenv(key)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


class Config:
    SECRET_KEY = _require_env("SECRET_KEY")
    SQLALCHEMY_DATABASE_URI = _require_env("DATABASE_URL")
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

    # Domain used when a request carries no usable Host
    DEFAULT_DOMAIN = os.getenv("DEFAULT_DOMAIN", "ishortn.ink")

    REDIS_URL = os.getenv("REDIS_URL")
    # TTL (seconds) for cached domain:alias -> link records
    REDIS_TTL = int(os.getenv("REDIS_TTL", 300))

    if not REDIS_URL:
        REDIS_URL = "redis://localhost:6379/0"

    ANALYTICS_ASYNC = _env_flag("ANALYTICS_ASYNC", True)
    ANALYTICS_WORKERS = int(os.getenv("ANALYTICS_WORKERS", 4))

    USAGE_TIMEZONE = os.getenv("USAGE_TIMEZONE", "UTC")
    USAGE_ALERT_WEBHOOK_URL = os.getenv("USAGE_ALERT_WEBHOOK_URL")
    USAGE_ALERT_TIMEOUT = int(os.getenv("USAGE_ALERT_TIMEOUT", 5))

    JWT_EXPIRY_DAYS = int(os.getenv("JWT_EXPIRY_DAYS", 7))
