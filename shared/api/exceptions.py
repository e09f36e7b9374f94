"""DRF exception handler rendering errors in the API envelope.

Known DRF exceptions (validation, authentication, permission, 404) keep
their status code and get ``{"success": false, "message": ...}`` with the
original error payload under ``errors``. Anything else is logged and
answered with a generic 500.
"""

from __future__ import annotations

import logging
from typing import Any

from rest_framework import status  # type: ignore
from rest_framework.views import exception_handler, set_rollback  # type: ignore

from .responses import api_error

logger = logging.getLogger(__name__)


def _first_message(data: Any) -> str:
    """Pull a human readable message out of a DRF error payload."""

    if isinstance(data, dict):
        if "detail" in data:
            return str(data["detail"])
        for field, value in data.items():
            message = _first_message(value)
            if field == "non_field_errors":
                return message
            return f"{field}: {message}"
        return "Invalid request"
    if isinstance(data, (list, tuple)):
        return _first_message(data[0]) if data else "Invalid request"
    return str(data)


def envelope_exception_handler(exc, context):  # type: ignore
    response = exception_handler(exc, context)
    if response is not None:
        errors = response.data
        response.data = {"success": False, "message": _first_message(errors)}
        if isinstance(errors, dict) and set(errors) != {"detail"}:
            response.data["errors"] = errors
        elif isinstance(errors, list):
            response.data["errors"] = errors
        return response

    view = context.get("view")
    logger.error(
        f"Unhandled error in {view.__class__.__name__ if view else 'unknown view'}: {exc}",
        exc_info=exc,
    )
    set_rollback()
    return api_error("Server error", status.HTTP_500_INTERNAL_SERVER_ERROR)
