"""
Core views providing infrastructure endpoints.

This module contains views that are not part of the business domain but are
essential for application infrastructure, such as health checks.
"""

from django.db import DatabaseError, connection
from django.http import JsonResponse

from media.storage import get_media_store


def health_check(request):
    """
    Health check endpoint for monitoring and orchestration.

    Returns:
        JsonResponse with status and component health:
        - status: "healthy" or "unhealthy"
        - database: "connected" or "disconnected"
        - media: "ready" or "unavailable"

    HTTP Status Codes:
        200: All systems operational
        503: One or more systems unhealthy
    """
    health_status = {
        "status": "healthy",
        "database": "unknown",
        "media": "unknown",
    }
    is_healthy = True

    # Check database connectivity
    try:
        with connection.cursor() as cursor:
            cursor.execute("SELECT 1")
            cursor.fetchone()
        health_status["database"] = "connected"
    except DatabaseError:
        health_status["database"] = "disconnected"
        is_healthy = False

    # Media store is initialized once at startup; a missing root means the
    # volume was unmounted underneath us
    store = get_media_store()
    if store.is_ready():
        health_status["media"] = "ready"
    else:
        health_status["media"] = "unavailable"
        is_healthy = False

    if not is_healthy:
        health_status["status"] = "unhealthy"

    status_code = 200 if is_healthy else 503

    return JsonResponse(health_status, status=status_code)
