# hd_core/visits/api/views.py
from __future__ import annotations

from uuid import UUID

from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.exceptions import PermissionDenied
from rest_framework.exceptions import ValidationError as DRFValidationError
from rest_framework.response import Response

from hd_core.common.api.pagination import paginate
from hd_core.common.idempotency import get_key, load_response, save_response
from hd_core.common.permissions import VisitPermission, can_act_for_department, user_roles
from hd_core.visits.api.serializers import (
    CompleteDepartmentSerializer,
    ForceCloseSerializer,
    ReminderSerializer,
    SelectItemsSerializer,
    VisitCreateSerializer,
    VisitDetailSerializer,
    VisitSerializer,
    VisitStatusHistorySerializer,
)
from hd_core.visits.models import Department, Visit, VisitStatus, VisitVariant
from hd_core.visits.selectors import get_visit, list_visits, visible_to_roles, visit_history
from hd_core.visits.services import VisitWorkflowService


def _q(name: str, type_=OpenApiTypes.STR, description: str = "") -> OpenApiParameter:
    return OpenApiParameter(name=name, type=type_, location=OpenApiParameter.QUERY, required=False, description=description)


class VisitViewSet(viewsets.ViewSet):
    """
    Thin API layer over VisitWorkflowService (writes) and visit selectors (reads).
    """
    permission_classes = [VisitPermission]
    serializer_class = VisitSerializer
    queryset = Visit.objects.none()
    lookup_value_regex = r"[0-9a-fA-F-]{36}"

    @staticmethod
    def _pk(pk) -> UUID:
        return UUID(str(pk))

    # ------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------
    @extend_schema(
        tags=["Visits"],
        responses={200: VisitSerializer(many=True)},
        parameters=[
            _q("status", description="Comma-separated statuses."),
            _q("variant"),
            _q("patient", OpenApiTypes.UUID),
            _q("queue", description="lab | pharmacy | doctor: open visits still waiting on that department."),
        ],
    )
    def list(self, request):
        params = request.query_params

        status_q = params.get("status") or None
        if status_q:
            unknown = [s for s in status_q.split(",") if s.strip() and s.strip() not in VisitStatus.values]
            if unknown:
                raise DRFValidationError({"status": f"Unknown status: {', '.join(unknown)}"})

        variant = params.get("variant") or None
        if variant and variant not in VisitVariant.values:
            raise DRFValidationError({"variant": f"Unknown variant: {variant}"})

        queue = params.get("queue") or None
        if queue and queue not in Department.values:
            raise DRFValidationError({"queue": f"Unknown department: {queue}"})

        patient_id = None
        patient_raw = params.get("patient") or params.get("patient_id")
        if patient_raw:
            try:
                patient_id = UUID(str(patient_raw))
            except ValueError:
                raise DRFValidationError({"patient": "Invalid patient id (UUID expected)."})

        qs = list_visits(status=status_q, variant=variant, patient_id=patient_id, queue=queue)
        qs = visible_to_roles(qs, user_roles(request.user))
        return paginate(request, qs, VisitSerializer)

    @extend_schema(tags=["Visits"], responses={200: VisitDetailSerializer})
    def retrieve(self, request, pk=None):
        visit = get_visit(visit_id=self._pk(pk))
        return Response(VisitDetailSerializer(visit).data, status=status.HTTP_200_OK)

    @extend_schema(tags=["Visits"], responses={200: VisitStatusHistorySerializer(many=True)})
    @action(detail=True, methods=["get"], url_path="history")
    def history(self, request, pk=None):
        visit = Visit.objects.only("id").get(id=self._pk(pk))
        items = visit_history(visit_id=visit.id)
        return Response(VisitStatusHistorySerializer(items, many=True).data, status=status.HTTP_200_OK)

    # ------------------------------------------------------------
    # Workflow writes
    # ------------------------------------------------------------
    @extend_schema(
        tags=["Visits"],
        request=VisitCreateSerializer,
        responses={201: VisitSerializer},
        parameters=[OpenApiParameter(name="Idempotency-Key", location=OpenApiParameter.HEADER, required=False, type=str)],
    )
    def create(self, request):
        idem = get_key(request)
        cached = load_response(request, idem)
        if cached is not None:
            return Response(cached[1], status=cached[0])

        ser = VisitCreateSerializer(data=request.data or {})
        ser.is_valid(raise_exception=True)

        visit = VisitWorkflowService.create_visit(
            patient_id=ser.validated_data["patient_id"],
            actor_user_id=request.user.id,
            variant=ser.validated_data["variant"],
            note=ser.validated_data.get("note", ""),
        )

        out = VisitSerializer(visit).data
        save_response(request, idem, out, status_code=status.HTTP_201_CREATED)
        return Response(out, status=status.HTTP_201_CREATED)

    @extend_schema(tags=["Visits"], request=CompleteDepartmentSerializer, responses={200: VisitSerializer})
    @action(detail=True, methods=["post"], url_path="complete")
    def complete(self, request, pk=None):
        ser = CompleteDepartmentSerializer(data=request.data or {})
        ser.is_valid(raise_exception=True)
        department = ser.validated_data["department"]

        if not can_act_for_department(request.user, department):
            raise PermissionDenied(f"Only {department} staff can complete the {department} session.")

        visit = VisitWorkflowService.complete_department(
            visit_id=self._pk(pk),
            department=department,
            actor_user_id=request.user.id,
            note=ser.validated_data.get("note", ""),
        )
        return Response(VisitSerializer(visit).data, status=status.HTTP_200_OK)

    @extend_schema(tags=["Visits"], request=SelectItemsSerializer, responses={200: VisitSerializer})
    @action(detail=True, methods=["post"], url_path="select-items")
    def select_items(self, request, pk=None):
        ser = SelectItemsSerializer(data=request.data or {})
        ser.is_valid(raise_exception=True)

        visit = VisitWorkflowService.select_doctor_directed_items(
            visit_id=self._pk(pk),
            actor_user_id=request.user.id,
            lab_test_ids=ser.validated_data.get("lab_test_ids") or [],
            drug_ids=ser.validated_data.get("drug_ids") or [],
        )
        return Response(VisitSerializer(visit).data, status=status.HTTP_200_OK)

    @extend_schema(tags=["Visits"], request=ForceCloseSerializer, responses={200: VisitSerializer})
    @action(detail=True, methods=["post"], url_path="force-close")
    def force_close(self, request, pk=None):
        ser = ForceCloseSerializer(data=request.data or {})
        ser.is_valid(raise_exception=True)

        visit = VisitWorkflowService.force_close(
            visit_id=self._pk(pk),
            actor_user_id=request.user.id,
            reason=ser.validated_data.get("reason", ""),
        )
        return Response(VisitSerializer(visit).data, status=status.HTTP_200_OK)

    @extend_schema(tags=["Visits"], request=ReminderSerializer, responses={202: None})
    @action(detail=True, methods=["post"], url_path="remind")
    def remind(self, request, pk=None):
        ser = ReminderSerializer(data=request.data or {})
        ser.is_valid(raise_exception=True)

        VisitWorkflowService.send_reminder(
            visit_id=self._pk(pk),
            role=ser.validated_data["role"].upper(),
            actor_user_id=request.user.id,
            message=ser.validated_data.get("message", ""),
        )
        return Response({"detail": "Reminder sent."}, status=status.HTTP_202_ACCEPTED)
