# hd_core/pharmacy/selectors.py
from __future__ import annotations

from uuid import UUID

from django.db.models import QuerySet

from hd_core.pharmacy.models import Prescription


def prescriptions_for_visit(*, visit_id: UUID) -> QuerySet[Prescription]:
    return Prescription.objects.filter(visit_id=visit_id).select_related("drug").order_by("created_at", "id")
