# hd_core/pharmacy/api/views.py
from __future__ import annotations

from uuid import UUID

from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.exceptions import ValidationError as DRFValidationError
from rest_framework.response import Response

from hd_core.common.idempotency import get_key, load_response, save_response
from hd_core.common.permissions import PharmacyPermission
from hd_core.pharmacy.api.serializers import (
    PrescriptionCreateSerializer,
    PrescriptionSerializer,
    PrescriptionsFromSetSerializer,
    PrescriptionUpdateSerializer,
)
from hd_core.pharmacy.models import Prescription
from hd_core.pharmacy.selectors import prescriptions_for_visit
from hd_core.pharmacy.services import PharmacyService


class PrescriptionViewSet(viewsets.ViewSet):
    """
    Pharmacy work items on a visit.
    """
    permission_classes = [PharmacyPermission]
    serializer_class = PrescriptionSerializer
    queryset = Prescription.objects.none()
    lookup_value_regex = r"[0-9a-fA-F-]{36}"

    @extend_schema(
        tags=["Pharmacy"],
        responses={200: PrescriptionSerializer(many=True)},
        parameters=[OpenApiParameter(name="visit", type=OpenApiTypes.UUID, location=OpenApiParameter.QUERY, required=True)],
    )
    def list(self, request):
        raw = request.query_params.get("visit") or request.query_params.get("visit_id")
        if not raw:
            raise DRFValidationError({"visit": "Query parameter 'visit' is required."})
        try:
            visit_id = UUID(str(raw))
        except ValueError:
            raise DRFValidationError({"visit": "Invalid visit id (UUID expected)."})

        qs = prescriptions_for_visit(visit_id=visit_id)
        return Response(PrescriptionSerializer(qs, many=True).data, status=status.HTTP_200_OK)

    @extend_schema(tags=["Pharmacy"], responses={200: PrescriptionSerializer})
    def retrieve(self, request, pk=None):
        p = Prescription.objects.get(id=UUID(str(pk)))
        return Response(PrescriptionSerializer(p).data, status=status.HTTP_200_OK)

    @extend_schema(
        tags=["Pharmacy"],
        request=PrescriptionCreateSerializer,
        responses={201: PrescriptionSerializer},
        parameters=[OpenApiParameter(name="Idempotency-Key", location=OpenApiParameter.HEADER, required=False, type=str)],
    )
    def create(self, request):
        idem = get_key(request)
        cached = load_response(request, idem)
        if cached is not None:
            return Response(cached[1], status=cached[0])

        ser = PrescriptionCreateSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        data = dict(ser.validated_data)

        p = PharmacyService.add_prescription(
            visit_id=data.pop("visit_id"),
            actor_user_id=request.user.id,
            **data,
        )

        out = PrescriptionSerializer(p).data
        save_response(request, idem, out, status_code=status.HTTP_201_CREATED)
        return Response(out, status=status.HTTP_201_CREATED)

    @extend_schema(
        tags=["Pharmacy"],
        request=PrescriptionsFromSetSerializer,
        responses={201: PrescriptionSerializer(many=True)},
    )
    @action(detail=False, methods=["post"], url_path="from-set")
    def from_set(self, request):
        ser = PrescriptionsFromSetSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        created = PharmacyService.add_prescriptions_from_set(
            visit_id=ser.validated_data["visit_id"],
            actor_user_id=request.user.id,
            set_id=ser.validated_data["set_id"],
            prescriptions=ser.validated_data["prescriptions"],
        )
        return Response(PrescriptionSerializer(created, many=True).data, status=status.HTTP_201_CREATED)

    @extend_schema(tags=["Pharmacy"], request=PrescriptionUpdateSerializer, responses={200: PrescriptionSerializer})
    def partial_update(self, request, pk=None):
        ser = PrescriptionUpdateSerializer(data=request.data, partial=True)
        ser.is_valid(raise_exception=True)

        p = PharmacyService.update_prescription(
            prescription_id=UUID(str(pk)),
            actor_user_id=request.user.id,
            data=ser.validated_data,
        )
        return Response(PrescriptionSerializer(p).data, status=status.HTTP_200_OK)

    @extend_schema(tags=["Pharmacy"], responses={204: None})
    def destroy(self, request, pk=None):
        PharmacyService.delete_prescription(prescription_id=UUID(str(pk)), actor_user_id=request.user.id)
        return Response(status=status.HTTP_204_NO_CONTENT)
