# hd_core/lab/selectors.py
from __future__ import annotations

from uuid import UUID

from django.db.models import QuerySet

from hd_core.lab.models import LabResult


def results_for_visit(*, visit_id: UUID) -> QuerySet[LabResult]:
    return LabResult.objects.filter(visit_id=visit_id).select_related("test").order_by("created_at", "id")
