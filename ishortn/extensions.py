# ishortn/extensions.py

import logging

from flask_sqlalchemy import SQLAlchemy
from flask_cors import CORS
import redis

db = SQLAlchemy()
cors = CORS()
redis_client = None

logger = logging.getLogger(__name__)


def init_redis(app, client=None):
    """Initialize Redis using REDIS_URL from config, or adopt a prebuilt client."""
    global redis_client

    if client is not None:
        redis_client = client
        return redis_client

    url = app.config.get("REDIS_URL")
    if not url:
        logger.info("No REDIS_URL configured, link cache disabled")
        redis_client = None
        return None

    try:
        client = redis.Redis.from_url(
            url,
            decode_responses=True,
            socket_connect_timeout=2,
            socket_timeout=2,
        )
        client.ping()
        redis_client = client
        app.logger.info("Redis initialized successfully.")
    except Exception as exc:
        redis_client = None
        app.logger.warning(f"Redis initialization failed: {exc}")

    return redis_client


def get_link_resolver():
    from flask import current_app
    return current_app.extensions["link_resolver"]


def get_link_cache():
    from flask import current_app
    return current_app.extensions["link_cache"]
