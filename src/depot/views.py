"""Project-level views for depot."""

import logging

from django.core.cache import cache
from django.db import connection
from django.http import JsonResponse

logger = logging.getLogger(__name__)


def ratelimited_view(request, exception=None):
    """Return 429 with Retry-After header on rate limit."""
    response = JsonResponse(
        {
            "success": False,
            "code": "RATE_LIMITED",
            "message": "Too many scans. Please wait a moment and retry.",
        },
        status=429,
    )
    response["Retry-After"] = "60"
    return response


def _database_ok():
    try:
        connection.ensure_connection()
    except Exception:
        logger.exception("Health check: database unavailable")
        return False
    return True


def _cache_ok():
    # Holds the scan rate limit counters.
    try:
        cache.set("_health_check", "1", timeout=10)
        return cache.get("_health_check") == "1"
    except Exception:
        logger.warning("Health check: cache unavailable", exc_info=True)
        return False


def health_check(request):
    """Liveness probe for the load balancer. Only the database is fatal."""
    db_ok = _database_ok()
    cache_ok = _cache_ok()
    return JsonResponse(
        {
            "status": "ok" if db_ok and cache_ok else "degraded",
            "db": db_ok,
            "cache": cache_ok,
        },
        status=200 if db_ok else 503,
    )
