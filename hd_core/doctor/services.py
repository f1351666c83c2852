# hd_core/doctor/services.py
from __future__ import annotations

from uuid import UUID

from django.db import transaction
from rest_framework.exceptions import ValidationError

from hd_core.audit.services import AuditService
from hd_core.doctor.models import Diagnosis
from hd_core.visits.guards import lock_visit_for_work
from hd_core.visits.models import Department


class DoctorService:
    """
    Diagnoses are always free text and never restricted by a selection, so the
    doctor can record one on a doctor-directed visit without selecting items.
    """

    @staticmethod
    @transaction.atomic
    def add_diagnosis(*, visit_id: UUID, actor_user_id: int | None, diagnosis: str, notes: str = "") -> Diagnosis:
        visit = lock_visit_for_work(visit_id=visit_id, department=Department.DOCTOR)

        if not (diagnosis or "").strip():
            raise ValidationError({"diagnosis": "Diagnosis is required."})

        d = Diagnosis.objects.create(
            visit=visit,
            diagnosis=diagnosis.strip(),
            notes=notes or "",
            created_by_id=actor_user_id,
        )

        AuditService.log(
            event_code="diagnosis.created",
            entity_type="Diagnosis",
            entity_id=d.id,
            actor_user_id=actor_user_id,
            metadata={"visit_id": str(visit.id)},
        )
        return d

    @staticmethod
    @transaction.atomic
    def update_diagnosis(*, diagnosis_id: UUID, actor_user_id: int | None, data: dict) -> Diagnosis:
        d = Diagnosis.objects.get(id=diagnosis_id)
        lock_visit_for_work(visit_id=d.visit_id, department=Department.DOCTOR)

        updates = {k: v for k, v in (data or {}).items() if k in {"diagnosis", "notes"}}
        if "diagnosis" in updates and not (updates["diagnosis"] or "").strip():
            raise ValidationError({"diagnosis": "Diagnosis cannot be blank."})

        for k, v in updates.items():
            setattr(d, k, v if v is not None else "")
        d.save()

        AuditService.log(
            event_code="diagnosis.updated",
            entity_type="Diagnosis",
            entity_id=d.id,
            actor_user_id=actor_user_id,
            metadata={"visit_id": str(d.visit_id), "updated_fields": sorted(updates.keys())},
        )
        return d

    @staticmethod
    @transaction.atomic
    def delete_diagnosis(*, diagnosis_id: UUID, actor_user_id: int | None) -> None:
        d = Diagnosis.objects.get(id=diagnosis_id)
        lock_visit_for_work(visit_id=d.visit_id, department=Department.DOCTOR)

        AuditService.log(
            event_code="diagnosis.deleted",
            entity_type="Diagnosis",
            entity_id=d.id,
            actor_user_id=actor_user_id,
            metadata={"visit_id": str(d.visit_id)},
        )
        d.delete()
