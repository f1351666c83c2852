# hd_core/notifications/api/views.py
from __future__ import annotations

from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import OpenApiParameter, extend_schema, extend_schema_view
from rest_framework import mixins, status, viewsets
from rest_framework.decorators import action
from rest_framework.response import Response

from hd_core.common.permissions import NotificationPermission, user_roles
from hd_core.notifications.api.serializers import NotificationSerializer
from hd_core.notifications.selectors import notifications_for_roles
from hd_core.notifications.services import NotificationService


@extend_schema_view(
    list=extend_schema(
        tags=["Notifications"],
        parameters=[OpenApiParameter(name="unread", type=OpenApiTypes.BOOL, location=OpenApiParameter.QUERY, required=False)],
    ),
    retrieve=extend_schema(tags=["Notifications"]),
)
class NotificationViewSet(mixins.ListModelMixin, mixins.RetrieveModelMixin, viewsets.GenericViewSet):
    """
    Notifications addressed to any of the caller's roles.
    """
    permission_classes = [NotificationPermission]
    serializer_class = NotificationSerializer
    lookup_value_regex = r"[0-9a-fA-F-]{36}"
    filterset_fields = ["kind", "visit_id"]

    def roles(self) -> set[str]:
        return user_roles(self.request.user)

    def get_queryset(self):
        unread = self.request.query_params.get("unread") in ("1", "true")
        return notifications_for_roles(roles=self.roles(), unread_only=unread)

    @extend_schema(tags=["Notifications"], request=None, responses={200: NotificationSerializer})
    @action(methods=["post"], detail=True, url_path="read")
    def read(self, request, pk=None):
        notif = NotificationService.mark_read(notification=self.get_object())
        return Response(NotificationSerializer(notif).data, status=status.HTTP_200_OK)

    @extend_schema(tags=["Notifications"], request=None, responses={200: OpenApiTypes.OBJECT})
    @action(methods=["get"], detail=False, url_path="unread-count")
    def unread_count(self, request):
        count = notifications_for_roles(roles=self.roles(), unread_only=True).count()
        return Response({"count": count}, status=status.HTTP_200_OK)

    @extend_schema(tags=["Notifications"], request=None, responses={200: OpenApiTypes.OBJECT})
    @action(methods=["post"], detail=False, url_path="mark-all-read")
    def mark_all_read(self, request):
        updated = NotificationService.mark_all_read(roles=self.roles())
        return Response({"updated": updated}, status=status.HTTP_200_OK)
