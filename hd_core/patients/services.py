# hd_core/patients/services.py
from __future__ import annotations

from uuid import UUID

from django.db import IntegrityError, transaction

from hd_core.audit.services import AuditService
from hd_core.patients.models import Patient

_FIELDS = {"full_name", "national_id", "phone", "gender", "date_of_birth", "address"}


class PatientService:
    @staticmethod
    @transaction.atomic
    def create_patient(*, actor_user_id: int | None, **data) -> Patient:
        values = {k: v for k, v in data.items() if k in _FIELDS}
        values["national_id"] = values.get("national_id") or None

        try:
            with transaction.atomic():
                patient = Patient.objects.create(**values)
        except IntegrityError:
            raise ValueError("A patient with this national id already exists.")

        AuditService.log(
            event_code="patient.created",
            entity_type="Patient",
            entity_id=patient.id,
            actor_user_id=actor_user_id,
            metadata={"national_id": patient.national_id},
        )
        return patient

    @staticmethod
    @transaction.atomic
    def update_patient(*, actor_user_id: int | None, patient_id: UUID, data: dict) -> Patient:
        patient = Patient.objects.get(id=patient_id)

        updates = {k: v for k, v in (data or {}).items() if k in _FIELDS}
        if "national_id" in updates:
            updates["national_id"] = updates["national_id"] or None

        for k, v in updates.items():
            setattr(patient, k, v)

        try:
            with transaction.atomic():
                patient.save()
        except IntegrityError:
            raise ValueError("A patient with this national id already exists.")

        AuditService.log(
            event_code="patient.updated",
            entity_type="Patient",
            entity_id=patient.id,
            actor_user_id=actor_user_id,
            metadata={"updated_fields": sorted(updates.keys())},
        )
        return patient
