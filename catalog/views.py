"""
Catalog views.

Includes the health check endpoint for monitoring and load balancer checks.
"""

from django.db import DatabaseError, connection
from django.http import JsonResponse

from catalog.models import Whisky, WhiskyRelatedState


def health_check(request):
    """
    Health check endpoint for the catalog service.

    Endpoint: GET /api/health/
    No authentication required (for load balancer checks).

    Response fields:
        - status: "healthy" or "unhealthy"
        - database: "connected" or "error"
        - whiskies: number of catalog whiskies
        - related_computed: number of whiskies whose related set was computed

    Returns:
        JsonResponse: HTTP 200 for healthy, HTTP 503 for unhealthy
    """
    try:
        connection.ensure_connection()
        whiskies = Whisky.objects.count()
        related_computed = WhiskyRelatedState.objects.count()
    except DatabaseError:
        return JsonResponse(
            {"status": "unhealthy", "database": "error"},
            status=503,
        )

    return JsonResponse({
        "status": "healthy",
        "database": "connected",
        "whiskies": whiskies,
        "related_computed": related_computed,
    })
