# hd_core/audit/api/views.py
from __future__ import annotations

from uuid import UUID

from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import status, viewsets
from rest_framework.exceptions import ValidationError as DRFValidationError
from rest_framework.response import Response

from hd_core.audit.api.serializers import AuditEventSerializer
from hd_core.audit.models import AuditEvent
from hd_core.audit.selectors import list_audit_events
from hd_core.common.permissions import AuditPermission


class AuditEventViewSet(viewsets.GenericViewSet):
    """
    List audit events (ADMIN only).
    """
    permission_classes = [AuditPermission]
    serializer_class = AuditEventSerializer
    queryset = AuditEvent.objects.none()

    @extend_schema(
        tags=["Audit"],
        responses={200: AuditEventSerializer(many=True)},
        parameters=[
            OpenApiParameter(name="entity_type", type=OpenApiTypes.STR, location=OpenApiParameter.QUERY, required=False),
            OpenApiParameter(name="entity_id", type=OpenApiTypes.UUID, location=OpenApiParameter.QUERY, required=False),
            OpenApiParameter(name="event_code", type=OpenApiTypes.STR, location=OpenApiParameter.QUERY, required=False),
            OpenApiParameter(name="actor_user_id", type=OpenApiTypes.INT, location=OpenApiParameter.QUERY, required=False),
            OpenApiParameter(
                name="limit",
                type=OpenApiTypes.INT,
                location=OpenApiParameter.QUERY,
                required=False,
                description="Max records to return (default 200, max 500).",
            ),
        ],
    )
    def list(self, request):
        entity_id_raw = request.query_params.get("entity_id") or None
        actor_user_raw = request.query_params.get("actor_user_id")

        entity_id = None
        if entity_id_raw:
            try:
                entity_id = UUID(str(entity_id_raw))
            except ValueError:
                raise DRFValidationError({"detail": "Invalid entity_id (UUID expected)"})

        actor_user_id = None
        if actor_user_raw not in (None, ""):
            try:
                actor_user_id = int(actor_user_raw)
            except ValueError:
                raise DRFValidationError({"detail": "Invalid actor_user_id (int expected)"})

        qs = list_audit_events(
            entity_type=request.query_params.get("entity_type") or None,
            entity_id=entity_id,
            event_code=request.query_params.get("event_code") or None,
            actor_user_id=actor_user_id,
        )

        limit = request.query_params.get("limit")
        try:
            limit_n = int(limit) if limit else 200
        except ValueError:
            limit_n = 200
        limit_n = max(1, min(limit_n, 500))

        return Response(AuditEventSerializer(qs[:limit_n], many=True).data, status=status.HTTP_200_OK)
