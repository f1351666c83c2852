# hd_core/lab/api/views.py
from __future__ import annotations

from uuid import UUID

from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.exceptions import ValidationError as DRFValidationError
from rest_framework.response import Response

from hd_core.common.idempotency import get_key, load_response, save_response
from hd_core.common.permissions import LabPermission
from hd_core.lab.api.serializers import (
    LabResultCreateSerializer,
    LabResultSerializer,
    LabResultsFromPanelSerializer,
    LabResultUpdateSerializer,
)
from hd_core.lab.models import LabResult
from hd_core.lab.selectors import results_for_visit
from hd_core.lab.services import LabService

_IDEMPOTENCY = OpenApiParameter(name="Idempotency-Key", location=OpenApiParameter.HEADER, required=False, type=str)


def _visit_param(request) -> UUID:
    raw = request.query_params.get("visit") or request.query_params.get("visit_id")
    if not raw:
        raise DRFValidationError({"visit": "Query parameter 'visit' is required."})
    try:
        return UUID(str(raw))
    except ValueError:
        raise DRFValidationError({"visit": "Invalid visit id (UUID expected)."})


class LabResultViewSet(viewsets.ViewSet):
    permission_classes = [LabPermission]
    serializer_class = LabResultSerializer
    queryset = LabResult.objects.none()
    lookup_value_regex = r"[0-9a-fA-F-]{36}"

    @extend_schema(
        tags=["Lab"],
        responses={200: LabResultSerializer(many=True)},
        parameters=[OpenApiParameter(name="visit", type=OpenApiTypes.UUID, location=OpenApiParameter.QUERY, required=True)],
    )
    def list(self, request):
        qs = results_for_visit(visit_id=_visit_param(request))
        return Response(LabResultSerializer(qs, many=True).data, status=status.HTTP_200_OK)

    @extend_schema(tags=["Lab"], responses={200: LabResultSerializer})
    def retrieve(self, request, pk=None):
        lr = LabResult.objects.get(id=UUID(str(pk)))
        return Response(LabResultSerializer(lr).data, status=status.HTTP_200_OK)

    @extend_schema(
        tags=["Lab"],
        request=LabResultCreateSerializer,
        responses={201: LabResultSerializer},
        parameters=[_IDEMPOTENCY],
    )
    def create(self, request):
        idem = get_key(request)
        cached = load_response(request, idem)
        if cached is not None:
            return Response(cached[1], status=cached[0])

        ser = LabResultCreateSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        data = dict(ser.validated_data)

        lr = LabService.add_result(
            visit_id=data.pop("visit_id"),
            actor_user_id=request.user.id,
            **data,
        )

        out = LabResultSerializer(lr).data
        save_response(request, idem, out, status_code=status.HTTP_201_CREATED)
        return Response(out, status=status.HTTP_201_CREATED)

    @extend_schema(
        tags=["Lab"],
        request=LabResultsFromPanelSerializer,
        responses={201: LabResultSerializer(many=True)},
        parameters=[_IDEMPOTENCY],
    )
    @action(detail=False, methods=["post"], url_path="from-panel")
    def from_panel(self, request):
        idem = get_key(request)
        cached = load_response(request, idem)
        if cached is not None:
            return Response(cached[1], status=cached[0])

        ser = LabResultsFromPanelSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        created = LabService.add_results_from_panel(
            visit_id=ser.validated_data["visit_id"],
            actor_user_id=request.user.id,
            panel_id=ser.validated_data["panel_id"],
            results=ser.validated_data.get("results") or [],
        )

        out = LabResultSerializer(created, many=True).data
        save_response(request, idem, out, status_code=status.HTTP_201_CREATED)
        return Response(out, status=status.HTTP_201_CREATED)

    @extend_schema(tags=["Lab"], request=LabResultUpdateSerializer, responses={200: LabResultSerializer})
    def partial_update(self, request, pk=None):
        ser = LabResultUpdateSerializer(data=request.data, partial=True)
        ser.is_valid(raise_exception=True)

        lr = LabService.update_result(
            lab_result_id=UUID(str(pk)),
            actor_user_id=request.user.id,
            data=ser.validated_data,
        )
        return Response(LabResultSerializer(lr).data, status=status.HTTP_200_OK)

    @extend_schema(tags=["Lab"], responses={204: None})
    def destroy(self, request, pk=None):
        LabService.delete_result(lab_result_id=UUID(str(pk)), actor_user_id=request.user.id)
        return Response(status=status.HTTP_204_NO_CONTENT)
