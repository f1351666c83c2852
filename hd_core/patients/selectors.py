# hd_core/patients/selectors.py
from __future__ import annotations

from django.db.models import Q, QuerySet

from hd_core.patients.models import Patient


def search_patients(*, q: str = "") -> QuerySet[Patient]:
    qs = Patient.objects.all()
    if q:
        qs = qs.filter(Q(full_name__icontains=q) | Q(national_id__icontains=q) | Q(phone__icontains=q))
    return qs.order_by("-created_at")
