"""
Core views providing infrastructure endpoints and API error rendering.

health_check is not part of the chat domain: it exists for whatever runs
the process (Docker health checks, orchestrators, load balancers).

api_exception_handler is the DRF EXCEPTION_HANDLER. It lives here rather
than in core.exceptions because DRF's views module pulls in the
authentication classes, which need a ready app registry.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from django.core.cache import cache
from django.db import DatabaseError, connection
from django.http import JsonResponse
from rest_framework import exceptions, status
from rest_framework.response import Response
from rest_framework.views import exception_handler

from core.exceptions import GENERIC_SERVER_ERROR, BaseApplicationError

if TYPE_CHECKING:
    from typing import Any

logger = logging.getLogger(__name__)


def health_check(request):
    """
    Report database and cache connectivity.

    The database is required: if it cannot answer `SELECT 1` the endpoint
    returns 503. The cache (Redis) only backs sessions and is configured
    with IGNORE_EXCEPTIONS, so a cache outage is reported but the service
    still counts as healthy.

    Example Response:
        {
            "status": "healthy",
            "database": "connected",
            "cache": "connected"
        }
    """
    health_status = {
        "status": "healthy",
        "database": "unknown",
        "cache": "unknown",
    }

    try:
        with connection.cursor() as cursor:
            cursor.execute("SELECT 1")
            cursor.fetchone()
        health_status["database"] = "connected"
    except DatabaseError as e:
        logger.error(f"Health check database probe failed: {e}")
        health_status["database"] = "disconnected"
        health_status["status"] = "unhealthy"

    cache.set("health_check", "ok", timeout=1)
    if cache.get("health_check") == "ok":
        health_status["cache"] = "connected"
    else:
        health_status["cache"] = "disconnected"

    status_code = 200 if health_status["status"] == "healthy" else 503
    return JsonResponse(health_status, status=status_code)


def _first_message(data: Any) -> str:
    """Pull the first human-readable message out of DRF error data."""
    if isinstance(data, dict):
        if "detail" in data:
            return str(data["detail"])
        for value in data.values():
            return _first_message(value)
    if isinstance(data, (list, tuple)) and data:
        return _first_message(data[0])
    return str(data)


def api_exception_handler(exc: Exception, context: dict) -> Response:
    """
    DRF exception handler producing {"error": ..., "error_code": ...} bodies.

    - DRF exceptions keep their status; the field errors move under
      "errors" and "error" carries the first readable message.
    - BaseApplicationError subclasses render with their own status.
      Server-side ones (ExternalServiceError) are logged and masked.
    - Anything else is logged with traceback and masked as a 500.
    """
    response = exception_handler(exc, context)
    view = context.get("view")
    view_name = view.__class__.__name__ if view is not None else "unknown"

    if response is not None:
        original = response.data
        body: dict[str, Any] = {"error": _first_message(original)}
        if isinstance(exc, exceptions.ValidationError):
            body["error_code"] = "VALIDATION_ERROR"
        elif getattr(exc, "default_code", None):
            body["error_code"] = str(exc.default_code).upper()
        if isinstance(original, dict) and "detail" not in original:
            body["errors"] = original
        response.data = body
        return response

    if isinstance(exc, BaseApplicationError):
        if exc.status_code >= status.HTTP_500_INTERNAL_SERVER_ERROR:
            logger.error(f"{view_name} failed: {exc!r}")
            return Response(
                {"error": GENERIC_SERVER_ERROR, "error_code": exc.error_code},
                status=exc.status_code,
            )
        return Response(exc.to_dict(), status=exc.status_code)

    logger.exception(f"Unhandled error in {view_name}: {exc}")
    return Response(
        {"error": GENERIC_SERVER_ERROR, "error_code": "SERVER_ERROR"},
        status=status.HTTP_500_INTERNAL_SERVER_ERROR,
    )
