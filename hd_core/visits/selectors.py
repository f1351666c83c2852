# hd_core/visits/selectors.py
from __future__ import annotations

from uuid import UUID

from django.db.models import Q, QuerySet

from hd_core.visits.models import (
    OPEN_STATUSES,
    Department,
    Visit,
    VisitStatusHistory,
    VisitVariant,
)
from hd_core.visits.workflow import flag_field


def get_visit(*, visit_id: UUID) -> Visit:
    """
    Visit with its work items and history. Read-only.
    """
    return (
        Visit.objects.select_related("patient")
        .prefetch_related("lab_results", "prescriptions", "diagnoses", "history")
        .get(id=visit_id)
    )


def department_queue(qs: QuerySet[Visit], department: str) -> QuerySet[Visit]:
    """
    Open visits a department still has to act on.

    Lab and pharmacy only see doctor-directed visits once the doctor has
    made a selection.
    """
    department = Department(department)
    qs = qs.filter(status__in=OPEN_STATUSES, **{flag_field(department): False})
    if department != Department.DOCTOR:
        qs = qs.exclude(Q(variant=VisitVariant.DOCTOR_DIRECTED) & Q(items_selected_at__isnull=True))
    return qs


def list_visits(
    *,
    status: str | None = None,
    variant: str | None = None,
    patient_id: UUID | None = None,
    queue: str | None = None,
) -> QuerySet[Visit]:
    qs = Visit.objects.select_related("patient")

    if status:
        statuses = [s.strip() for s in status.split(",") if s.strip()]
        qs = qs.filter(status__in=statuses)

    if variant:
        qs = qs.filter(variant=variant)

    if patient_id:
        qs = qs.filter(patient_id=patient_id)

    if queue:
        qs = department_queue(qs, queue)

    return qs.order_by("-created_at")


def patient_visit_history(*, patient_id: UUID) -> QuerySet[Visit]:
    return Visit.objects.filter(patient_id=patient_id).select_related("patient").order_by("-created_at")


def visit_history(*, visit_id: UUID) -> QuerySet[VisitStatusHistory]:
    return VisitStatusHistory.objects.filter(visit_id=visit_id).order_by("created_at", "id")


def visible_to_roles(qs: QuerySet[Visit], roles: set[str]) -> QuerySet[Visit]:
    """
    Default list scope for department-only staff: their open worklist plus
    visits they already completed. Front desk, admin and read-only see all.
    """
    from hd_core.common.permissions import DEPARTMENT_ROLES, ROLE_ADMIN, ROLE_INQUIRY, ROLE_READONLY

    if roles & {ROLE_ADMIN, ROLE_INQUIRY, ROLE_READONLY}:
        return qs

    departments = [dept for dept, role in DEPARTMENT_ROLES.items() if role in roles]
    if not departments:
        return qs.none()

    cond = Q()
    for dept in departments:
        field = flag_field(dept)
        cond |= Q(status__in=OPEN_STATUSES, **{field: False}) | Q(**{field: True})
    return qs.filter(cond)
