"""Helpers building the ``{success, data, message}`` response envelope."""

from __future__ import annotations

from typing import Any

from rest_framework import status as http_status  # type: ignore
from rest_framework.response import Response  # type: ignore


def api_response(
    data: Any = None,
    message: str | None = None,
    status: int = http_status.HTTP_200_OK,
    **extra: Any,
) -> Response:
    """Successful response; extra keyword arguments (e.g. ``count``) are added as-is."""

    payload: dict[str, Any] = {"success": True, "data": data}
    if message:
        payload["message"] = message
    payload.update(extra)
    return Response(payload, status=status)


def api_error(
    message: str,
    status: int = http_status.HTTP_400_BAD_REQUEST,
    errors: Any = None,
) -> Response:
    payload: dict[str, Any] = {"success": False, "message": message}
    if errors is not None:
        payload["errors"] = errors
    return Response(payload, status=status)
