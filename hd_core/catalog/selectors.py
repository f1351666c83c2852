# hd_core/catalog/selectors.py
from __future__ import annotations

from typing import Iterable
from uuid import UUID

from django.db.models import Prefetch, Q, QuerySet

from hd_core.catalog.models import Drug, LabPanel, LabPanelItem, LabTest, PrescriptionSet, PrescriptionSetItem


def _search(qs: QuerySet, q: str, *fields: str) -> QuerySet:
    if not q:
        return qs
    cond = Q()
    for f in fields:
        cond |= Q(**{f"{f}__icontains": q})
    return qs.filter(cond)


def lab_tests_qs(*, q: str = "", include_inactive: bool = False) -> QuerySet[LabTest]:
    qs = LabTest.objects.all()
    if not include_inactive:
        qs = qs.filter(is_active=True)
    return _search(qs, q, "name", "code")


def drugs_qs(*, q: str = "", include_inactive: bool = False) -> QuerySet[Drug]:
    qs = Drug.objects.all()
    if not include_inactive:
        qs = qs.filter(is_active=True)
    return _search(qs, q, "name", "code")


def lab_panels_qs(*, include_inactive: bool = False) -> QuerySet[LabPanel]:
    qs = LabPanel.objects.prefetch_related(
        Prefetch("items", queryset=LabPanelItem.objects.select_related("test"))
    )
    if not include_inactive:
        qs = qs.filter(is_active=True)
    return qs


def prescription_sets_qs(*, include_inactive: bool = False) -> QuerySet[PrescriptionSet]:
    qs = PrescriptionSet.objects.prefetch_related(
        Prefetch("items", queryset=PrescriptionSetItem.objects.select_related("drug"))
    )
    if not include_inactive:
        qs = qs.filter(is_active=True)
    return qs


def active_lab_test_ids(ids: Iterable[UUID]) -> set[str]:
    return {str(pk) for pk in LabTest.objects.filter(id__in=list(ids), is_active=True).values_list("id", flat=True)}


def active_drug_ids(ids: Iterable[UUID]) -> set[str]:
    return {str(pk) for pk in Drug.objects.filter(id__in=list(ids), is_active=True).values_list("id", flat=True)}
