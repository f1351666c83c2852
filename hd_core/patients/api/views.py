# hd_core/patients/api/views.py
from __future__ import annotations

from uuid import UUID

from drf_spectacular.utils import extend_schema
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.exceptions import ValidationError as DRFValidationError
from rest_framework.response import Response

from hd_core.common.permissions import PatientPermission
from hd_core.patients.api.serializers import (
    PatientCreateSerializer,
    PatientSerializer,
    PatientUpdateSerializer,
)
from hd_core.patients.models import Patient
from hd_core.patients.selectors import search_patients
from hd_core.patients.services import PatientService


def _actor_id(request) -> int | None:
    return request.user.id if request.user and request.user.is_authenticated else None


class PatientViewSet(viewsets.ViewSet):
    permission_classes = [PatientPermission]

    serializer_class = PatientSerializer
    queryset = Patient.objects.none()
    lookup_value_regex = r"[0-9a-fA-F-]{36}"

    @extend_schema(tags=["Patients"], responses={200: PatientSerializer(many=True)})
    def list(self, request):
        q = request.query_params.get("q", "").strip()
        qs = search_patients(q=q)
        return Response(PatientSerializer(qs[:200], many=True).data, status=status.HTTP_200_OK)

    @extend_schema(tags=["Patients"], request=PatientCreateSerializer, responses={201: PatientSerializer})
    def create(self, request):
        ser = PatientCreateSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        try:
            patient = PatientService.create_patient(actor_user_id=_actor_id(request), **ser.validated_data)
        except ValueError as e:
            raise DRFValidationError({"detail": str(e)})

        return Response(PatientSerializer(patient).data, status=status.HTTP_201_CREATED)

    @extend_schema(tags=["Patients"], responses={200: PatientSerializer})
    def retrieve(self, request, pk=None):
        patient = Patient.objects.get(id=UUID(str(pk)))
        return Response(PatientSerializer(patient).data, status=status.HTTP_200_OK)

    @extend_schema(tags=["Patients"], request=PatientUpdateSerializer, responses={200: PatientSerializer})
    def partial_update(self, request, pk=None):
        ser = PatientUpdateSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        try:
            patient = PatientService.update_patient(
                actor_user_id=_actor_id(request),
                patient_id=UUID(str(pk)),
                data=ser.validated_data,
            )
        except ValueError as e:
            raise DRFValidationError({"detail": str(e)})

        return Response(PatientSerializer(patient).data, status=status.HTTP_200_OK)

    @extend_schema(tags=["Patients"])
    @action(detail=True, methods=["get"], url_path="visits")
    def visits(self, request, pk=None):
        """
        Visit history for one patient, newest first.
        """
        from hd_core.visits.api.serializers import VisitSerializer
        from hd_core.visits.selectors import patient_visit_history

        patient = Patient.objects.get(id=UUID(str(pk)))
        qs = patient_visit_history(patient_id=patient.id)
        return Response(VisitSerializer(qs, many=True).data, status=status.HTTP_200_OK)
