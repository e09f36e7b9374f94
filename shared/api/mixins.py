"""Viewset mixin wrapping plain DRF responses into the API envelope."""

from __future__ import annotations

from rest_framework.response import Response  # type: ignore


class EnvelopeResponseMixin:
    """
    Wrap successful responses that are not already enveloped.

    Lets the stock ``ModelViewSet`` actions (list, retrieve, create,
    update) return ``{"success": true, "data": ...}`` while custom
    actions build their payload with ``api_response``.
    """

    def finalize_response(self, request, response, *args, **kwargs):  # type: ignore
        if (
            isinstance(response, Response)
            and response.status_code < 400
            and response.data is not None
            and not (isinstance(response.data, dict) and "success" in response.data)
        ):
            payload = {"success": True, "data": response.data}
            if isinstance(response.data, list):
                payload["count"] = len(response.data)
            response.data = payload
        return super().finalize_response(request, response, *args, **kwargs)  # type: ignore
