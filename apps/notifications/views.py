"""API views for notifications."""

from __future__ import annotations

from rest_framework import mixins, permissions, viewsets  # type: ignore
from rest_framework.decorators import action  # type: ignore

from shared.api.mixins import EnvelopeResponseMixin
from shared.api.responses import api_response

from .models import Notification
from .serializers import NotificationSerializer


class NotificationViewSet(
    EnvelopeResponseMixin,
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    viewsets.GenericViewSet,
):
    """List the authenticated user's notifications and mark them read."""

    serializer_class = NotificationSerializer
    permission_classes = [permissions.IsAuthenticated]
    filterset_fields = ['is_read']

    def get_queryset(self):  # type: ignore
        return Notification.objects.filter(user=self.request.user)

    @action(detail=True, methods=['post', 'patch'], url_path='read')
    def read(self, request, pk=None):  # type: ignore
        notification = self.get_object()
        notification.mark_read()
        return api_response(NotificationSerializer(notification).data, "Notification marked as read")
