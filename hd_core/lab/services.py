# hd_core/lab/services.py
from __future__ import annotations

import logging
from uuid import UUID

from django.db import transaction
from rest_framework.exceptions import ValidationError

from hd_core.audit.services import AuditService
from hd_core.catalog.models import LabPanel, LabTest
from hd_core.lab.models import LabResult
from hd_core.visits.guards import lock_visit_for_work
from hd_core.visits.models import Department

logger = logging.getLogger(__name__)

_EDITABLE = {"test_name", "result", "unit", "normal_range", "notes"}


def _active_test(test_id: UUID) -> LabTest:
    test = LabTest.objects.filter(id=test_id, is_active=True).first()
    if test is None:
        raise ValidationError({"test_id": "Lab test not found in catalog or inactive."})
    return test


class LabService:
    """
    Lab work items. Every write goes through the visit lock so it cannot
    race the department's completion.
    """

    @staticmethod
    @transaction.atomic
    def add_result(
        *,
        visit_id: UUID,
        actor_user_id: int | None,
        test_id: UUID | None = None,
        test_name: str = "",
        result: str = "",
        unit: str = "",
        normal_range: str = "",
        notes: str = "",
    ) -> LabResult:
        visit = lock_visit_for_work(visit_id=visit_id, department=Department.LAB, catalog_item_id=test_id)

        test = None
        if test_id:
            test = _active_test(test_id)
            test_name = test.name
            unit = test.unit
            normal_range = test.normal_range_display()
        elif not (test_name or "").strip():
            raise ValidationError({"test_name": "Test name is required when no catalog test is given."})

        lr = LabResult.objects.create(
            visit=visit,
            test=test,
            test_name=test_name.strip(),
            result=result or "",
            unit=unit or "",
            normal_range=normal_range or "",
            notes=notes or "",
            created_by_id=actor_user_id,
        )

        AuditService.log(
            event_code="lab_result.created",
            entity_type="LabResult",
            entity_id=lr.id,
            actor_user_id=actor_user_id,
            metadata={"visit_id": str(visit.id), "test_id": str(test.id) if test else None},
        )
        logger.debug("Lab result %s added to visit %s", lr.id, visit.visit_number)
        return lr

    @staticmethod
    @transaction.atomic
    def add_results_from_panel(
        *,
        visit_id: UUID,
        actor_user_id: int | None,
        panel_id: UUID,
        results: list[dict] | None = None,
    ) -> list[LabResult]:
        """
        One result per active test in the panel; values are matched by test id.
        """
        panel = LabPanel.objects.filter(id=panel_id, is_active=True).first()
        if panel is None:
            raise ValidationError({"panel_id": "Lab panel not found or inactive."})

        tests = [item.test for item in panel.items.select_related("test") if item.test.is_active]
        if not tests:
            raise ValidationError({"panel_id": "Lab panel has no active tests."})

        values = {str(r.get("test_id")): r for r in (results or []) if r.get("test_id")}

        created = []
        for test in tests:
            data = values.get(str(test.id), {})
            created.append(
                LabService.add_result(
                    visit_id=visit_id,
                    actor_user_id=actor_user_id,
                    test_id=test.id,
                    result=data.get("result", "") or "",
                    notes=data.get("notes", "") or "",
                )
            )

        logger.info("Added %s lab result(s) from panel %s to visit %s", len(created), panel.name, visit_id)
        return created

    @staticmethod
    @transaction.atomic
    def update_result(*, lab_result_id: UUID, actor_user_id: int | None, data: dict) -> LabResult:
        lr = LabResult.objects.get(id=lab_result_id)
        lock_visit_for_work(visit_id=lr.visit_id, department=Department.LAB, catalog_item_id=lr.test_id)

        updates = {k: v for k, v in (data or {}).items() if k in _EDITABLE}
        if lr.test_id:
            # catalog-derived fields stay as copied
            updates = {k: v for k, v in updates.items() if k in {"result", "notes"}}
        if "test_name" in updates and not (updates["test_name"] or "").strip():
            raise ValidationError({"test_name": "Test name cannot be blank."})

        for k, v in updates.items():
            setattr(lr, k, v if v is not None else "")
        lr.save()

        AuditService.log(
            event_code="lab_result.updated",
            entity_type="LabResult",
            entity_id=lr.id,
            actor_user_id=actor_user_id,
            metadata={"visit_id": str(lr.visit_id), "updated_fields": sorted(updates.keys())},
        )
        return lr

    @staticmethod
    @transaction.atomic
    def delete_result(*, lab_result_id: UUID, actor_user_id: int | None) -> None:
        lr = LabResult.objects.get(id=lab_result_id)
        lock_visit_for_work(visit_id=lr.visit_id, department=Department.LAB, catalog_item_id=lr.test_id)

        AuditService.log(
            event_code="lab_result.deleted",
            entity_type="LabResult",
            entity_id=lr.id,
            actor_user_id=actor_user_id,
            metadata={"visit_id": str(lr.visit_id), "test_name": lr.test_name},
        )
        lr.delete()
