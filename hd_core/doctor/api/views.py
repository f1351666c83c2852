# hd_core/doctor/api/views.py
from __future__ import annotations

from uuid import UUID

from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import status, viewsets
from rest_framework.exceptions import ValidationError as DRFValidationError
from rest_framework.response import Response

from hd_core.common.idempotency import get_key, load_response, save_response
from hd_core.common.permissions import DoctorPermission
from hd_core.doctor.api.serializers import DiagnosisCreateSerializer, DiagnosisSerializer, DiagnosisUpdateSerializer
from hd_core.doctor.models import Diagnosis
from hd_core.doctor.services import DoctorService


class DiagnosisViewSet(viewsets.ViewSet):
    permission_classes = [DoctorPermission]
    serializer_class = DiagnosisSerializer
    queryset = Diagnosis.objects.none()
    lookup_value_regex = r"[0-9a-fA-F-]{36}"

    @extend_schema(
        tags=["Doctor"],
        responses={200: DiagnosisSerializer(many=True)},
        parameters=[OpenApiParameter(name="visit", type=OpenApiTypes.UUID, location=OpenApiParameter.QUERY, required=True)],
    )
    def list(self, request):
        raw = request.query_params.get("visit") or request.query_params.get("visit_id")
        try:
            visit_id = UUID(str(raw)) if raw else None
        except ValueError:
            visit_id = None
        if visit_id is None:
            raise DRFValidationError({"visit": "Query parameter 'visit' (UUID) is required."})

        qs = Diagnosis.objects.filter(visit_id=visit_id).order_by("created_at", "id")
        return Response(DiagnosisSerializer(qs, many=True).data, status=status.HTTP_200_OK)

    @extend_schema(tags=["Doctor"], responses={200: DiagnosisSerializer})
    def retrieve(self, request, pk=None):
        d = Diagnosis.objects.get(id=UUID(str(pk)))
        return Response(DiagnosisSerializer(d).data, status=status.HTTP_200_OK)

    @extend_schema(
        tags=["Doctor"],
        request=DiagnosisCreateSerializer,
        responses={201: DiagnosisSerializer},
        parameters=[OpenApiParameter(name="Idempotency-Key", location=OpenApiParameter.HEADER, required=False, type=str)],
    )
    def create(self, request):
        idem = get_key(request)
        cached = load_response(request, idem)
        if cached is not None:
            return Response(cached[1], status=cached[0])

        ser = DiagnosisCreateSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        d = DoctorService.add_diagnosis(
            visit_id=ser.validated_data["visit_id"],
            actor_user_id=request.user.id,
            diagnosis=ser.validated_data["diagnosis"],
            notes=ser.validated_data.get("notes", ""),
        )

        out = DiagnosisSerializer(d).data
        save_response(request, idem, out, status_code=status.HTTP_201_CREATED)
        return Response(out, status=status.HTTP_201_CREATED)

    @extend_schema(tags=["Doctor"], request=DiagnosisUpdateSerializer, responses={200: DiagnosisSerializer})
    def partial_update(self, request, pk=None):
        ser = DiagnosisUpdateSerializer(data=request.data, partial=True)
        ser.is_valid(raise_exception=True)

        d = DoctorService.update_diagnosis(
            diagnosis_id=UUID(str(pk)),
            actor_user_id=request.user.id,
            data=ser.validated_data,
        )
        return Response(DiagnosisSerializer(d).data, status=status.HTTP_200_OK)

    @extend_schema(tags=["Doctor"], responses={204: None})
    def destroy(self, request, pk=None):
        DoctorService.delete_diagnosis(diagnosis_id=UUID(str(pk)), actor_user_id=request.user.id)
        return Response(status=status.HTTP_204_NO_CONTENT)
