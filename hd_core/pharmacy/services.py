# hd_core/pharmacy/services.py
from __future__ import annotations

import logging
from uuid import UUID

from django.db import transaction
from rest_framework.exceptions import ValidationError

from hd_core.audit.services import AuditService
from hd_core.catalog.models import Drug, PrescriptionSet
from hd_core.pharmacy.models import Prescription
from hd_core.visits.guards import lock_visit_for_work
from hd_core.visits.models import Department

logger = logging.getLogger(__name__)


def _positive_quantity(value, field_name: str = "quantity") -> int:
    try:
        qty = int(value)
    except (TypeError, ValueError):
        raise ValidationError({field_name: "Quantity must be a whole number."})
    if qty <= 0:
        raise ValidationError({field_name: "Quantity must be > 0."})
    return qty


class PharmacyService:
    @staticmethod
    @transaction.atomic
    def add_prescription(
        *,
        visit_id: UUID,
        actor_user_id: int | None,
        quantity: int,
        drug_id: UUID | None = None,
        medication_name: str = "",
        dosage: str = "",
        instructions: str = "",
    ) -> Prescription:
        visit = lock_visit_for_work(visit_id=visit_id, department=Department.PHARMACY, catalog_item_id=drug_id)
        quantity = _positive_quantity(quantity)

        drug = None
        if drug_id:
            drug = Drug.objects.filter(id=drug_id, is_active=True).first()
            if drug is None:
                raise ValidationError({"drug_id": "Drug not found in catalog or inactive."})
            medication_name = drug.display_name
        elif not (medication_name or "").strip():
            raise ValidationError({"medication_name": "Medication name is required when no catalog drug is given."})

        p = Prescription.objects.create(
            visit=visit,
            drug=drug,
            medication_name=medication_name.strip(),
            dosage=dosage or "",
            quantity=quantity,
            instructions=instructions or "",
            created_by_id=actor_user_id,
        )

        AuditService.log(
            event_code="prescription.created",
            entity_type="Prescription",
            entity_id=p.id,
            actor_user_id=actor_user_id,
            metadata={"visit_id": str(visit.id), "drug_id": str(drug.id) if drug else None, "quantity": quantity},
        )
        logger.debug("Prescription %s added to visit %s", p.id, visit.visit_number)
        return p

    @staticmethod
    @transaction.atomic
    def add_prescriptions_from_set(
        *,
        visit_id: UUID,
        actor_user_id: int | None,
        set_id: UUID,
        prescriptions: list[dict] | None = None,
    ) -> list[Prescription]:
        """
        Dispense drugs from a prescription set.

        Only drugs given a positive quantity are added; the set's default
        dosage fills in when none is supplied.
        """
        pset = PrescriptionSet.objects.filter(id=set_id, is_active=True).first()
        if pset is None:
            raise ValidationError({"set_id": "Prescription set not found or inactive."})

        items = [item for item in pset.items.select_related("drug") if item.drug.is_active]
        if not items:
            raise ValidationError({"set_id": "Prescription set has no active drugs."})

        values = {str(p.get("drug_id")): p for p in (prescriptions or []) if p.get("drug_id")}

        created = []
        for item in items:
            data = values.get(str(item.drug_id))
            if not data or not data.get("quantity") or int(data["quantity"]) <= 0:
                continue
            created.append(
                PharmacyService.add_prescription(
                    visit_id=visit_id,
                    actor_user_id=actor_user_id,
                    drug_id=item.drug_id,
                    quantity=data["quantity"],
                    dosage=data.get("dosage") or item.default_dosage,
                    instructions=data.get("instructions") or "",
                )
            )

        if not created:
            raise ValidationError({"prescriptions": "Give a quantity for at least one drug in the set."})

        logger.info("Added %s prescription(s) from set %s to visit %s", len(created), pset.name, visit_id)
        return created

    @staticmethod
    @transaction.atomic
    def update_prescription(*, prescription_id: UUID, actor_user_id: int | None, data: dict) -> Prescription:
        p = Prescription.objects.get(id=prescription_id)
        lock_visit_for_work(visit_id=p.visit_id, department=Department.PHARMACY, catalog_item_id=p.drug_id)

        allowed = {"dosage", "quantity", "instructions"} if p.drug_id else {"medication_name", "dosage", "quantity", "instructions"}
        updates = {k: v for k, v in (data or {}).items() if k in allowed}

        if "quantity" in updates:
            updates["quantity"] = _positive_quantity(updates["quantity"])
        if "medication_name" in updates and not (updates["medication_name"] or "").strip():
            raise ValidationError({"medication_name": "Medication name cannot be blank."})

        for k, v in updates.items():
            setattr(p, k, v if v is not None else "")
        p.save()

        AuditService.log(
            event_code="prescription.updated",
            entity_type="Prescription",
            entity_id=p.id,
            actor_user_id=actor_user_id,
            metadata={"visit_id": str(p.visit_id), "updated_fields": sorted(updates.keys())},
        )
        return p

    @staticmethod
    @transaction.atomic
    def delete_prescription(*, prescription_id: UUID, actor_user_id: int | None) -> None:
        p = Prescription.objects.get(id=prescription_id)
        lock_visit_for_work(visit_id=p.visit_id, department=Department.PHARMACY, catalog_item_id=p.drug_id)

        AuditService.log(
            event_code="prescription.deleted",
            entity_type="Prescription",
            entity_id=p.id,
            actor_user_id=actor_user_id,
            metadata={"visit_id": str(p.visit_id), "medication_name": p.medication_name},
        )
        p.delete()
