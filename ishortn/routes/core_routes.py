from flask import Blueprint

from ..extensions import get_link_cache
from ..utils.response import api_response

core_bp = Blueprint("core", __name__)


@core_bp.route("/")
def root():
    return api_response(True, "ishortn link service", None)


@core_bp.route("/health")
def health():
    cache = get_link_cache()
    return {
        "status": "ok",
        "cache": "up" if cache.client is not None else "down",
        "cache_hits": cache.hits,
        "cache_misses": cache.misses,
    }, 200
