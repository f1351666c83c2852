# hd_core/visits/services.py
from __future__ import annotations

import logging
from typing import Iterable
from uuid import UUID

from django.conf import settings
from django.db import IntegrityError, transaction
from django.db.models.functions import Length
from django.utils import timezone
from rest_framework.exceptions import ValidationError

from hd_core.audit.services import AuditService
from hd_core.catalog.selectors import active_drug_ids, active_lab_test_ids
from hd_core.common.api.exceptions import ConflictError
from hd_core.common.events import publish
from hd_core.common.permissions import DEPARTMENT_ROLES
from hd_core.patients.models import Patient
from hd_core.visits.exceptions import (
    AlreadyCompleted,
    AlreadySelected,
    AlreadyTerminal,
    EmptyDepartment,
    NotDoctorDirected,
    OpenVisitExists,
    StaleVisitWrite,
    VisitTerminal,
)
from hd_core.visits.guards import ensure_not_terminal, lock_visit, retry_once_on_conflict
from hd_core.visits.models import (
    OPEN_STATUSES,
    Department,
    HistoryEvent,
    Visit,
    VisitStatus,
    VisitStatusHistory,
    VisitVariant,
)
from hd_core.visits.workflow import COMPLETION_EVENTS, RestrictionSet, derive_status, flag_field

logger = logging.getLogger(__name__)

# Department -> reverse accessor of its work items on Visit
WORK_ITEM_RELATIONS = {
    Department.LAB: "lab_results",
    Department.PHARMACY: "prescriptions",
    Department.DOCTOR: "diagnoses",
}


def parse_department(value) -> Department:
    try:
        return Department(str(value))
    except ValueError:
        raise ValidationError({"department": f"Unknown department: {value!r}."})


def next_visit_number() -> str:
    """
    YYYYMMDD-NNNN, sequential per local calendar day.

    The suffix widens past 9999, so the latest number is the longest one first.
    """
    prefix = timezone.localdate().strftime("%Y%m%d")
    last = (
        Visit.objects.filter(visit_number__startswith=f"{prefix}-")
        .order_by(Length("visit_number").desc(), "-visit_number")
        .values_list("visit_number", flat=True)
        .first()
    )
    seq = int(last.rsplit("-", 1)[1]) + 1 if last else 1
    return f"{prefix}-{seq:04d}"


def open_visit_for_patient(patient_id: UUID) -> Visit | None:
    return Visit.objects.filter(patient_id=patient_id, status__in=OPEN_STATUSES).order_by("-created_at").first()


def _visit_payload(visit: Visit, **extra) -> dict:
    payload = {
        "visit_id": str(visit.id),
        "visit_number": visit.visit_number,
        "patient_id": str(visit.patient_id),
        "variant": visit.variant,
        "status": visit.status,
        "outstanding": visit.outstanding_departments(),
    }
    payload.update(extra)
    return payload


class VisitWorkflowService:
    """
    The only writer of Visit flags and status.

    Every mutation locks the one visit row it touches, recomputes the derived
    status under that lock and writes it with a compare-and-set.
    """

    # ---------------------------------------------------------------------
    # Helpers
    # ---------------------------------------------------------------------
    @staticmethod
    def _compare_and_set(visit: Visit, **updates) -> Visit:
        """
        Write `updates` only if the row still matches what was read under the lock.
        """
        updates.setdefault("updated_at", timezone.now())
        matched = Visit.objects.filter(
            id=visit.id,
            status=visit.status,
            lab_done=visit.lab_done,
            pharmacy_done=visit.pharmacy_done,
            doctor_done=visit.doctor_done,
            updated_at=visit.updated_at,
        ).update(**updates)
        if matched != 1:
            raise StaleVisitWrite(f"Visit {visit.id} changed underneath the lock")
        visit.refresh_from_db()
        return visit

    @staticmethod
    def _record_transition(*, visit: Visit, event: str, actor_user_id: int | None, note: str = "") -> VisitStatusHistory:
        return VisitStatusHistory.objects.create(
            visit=visit,
            status=visit.status,
            event=event,
            note=note or "",
            changed_by_id=actor_user_id,
        )

    @staticmethod
    def _insert_visit(*, patient: Patient, variant: str, actor_user_id: int | None) -> Visit:
        retries = max(1, int(getattr(settings, "HD_VISIT_NUMBER_RETRIES", 5)))
        for attempt in range(1, retries + 1):
            number = next_visit_number()
            try:
                with transaction.atomic():
                    return Visit.objects.create(
                        visit_number=number,
                        patient=patient,
                        variant=variant,
                        status=derive_status(lab_done=False, pharmacy_done=False, doctor_done=False),
                        created_by_id=actor_user_id,
                    )
            except IntegrityError:
                existing = open_visit_for_patient(patient.id)
                if existing is not None:
                    raise OpenVisitExists.for_visit(existing)
                logger.warning("Visit number %s already taken (attempt %s/%s)", number, attempt, retries)

        raise ConflictError("Could not allocate a visit number, please retry.")

    # ---------------------------------------------------------------------
    # Creation
    # ---------------------------------------------------------------------
    @staticmethod
    @transaction.atomic
    def create_visit(
        *,
        patient_id: UUID,
        actor_user_id: int | None,
        variant: str = VisitVariant.STANDARD,
        note: str = "",
    ) -> Visit:
        if variant not in VisitVariant.values:
            raise ValidationError({"variant": f"Unknown variant: {variant!r}."})

        # Serializes concurrent creations for the same patient
        patient = Patient.objects.select_for_update().get(id=patient_id)

        existing = open_visit_for_patient(patient.id)
        if existing is not None:
            raise OpenVisitExists.for_visit(existing)

        visit = VisitWorkflowService._insert_visit(patient=patient, variant=variant, actor_user_id=actor_user_id)

        VisitWorkflowService._record_transition(
            visit=visit,
            event=HistoryEvent.VISIT_OPENED,
            actor_user_id=actor_user_id,
            note=note,
        )

        AuditService.log(
            event_code="visit.created",
            entity_type="Visit",
            entity_id=visit.id,
            actor_user_id=actor_user_id,
            metadata={"patient_id": str(patient.id), "visit_number": visit.visit_number, "variant": visit.variant},
        )

        logger.info("Visit %s opened for patient %s (%s)", visit.visit_number, patient.id, visit.variant)

        publish("visit.created", _visit_payload(visit, actor_user_id=actor_user_id))
        return visit

    # ---------------------------------------------------------------------
    # Department work
    # ---------------------------------------------------------------------
    @staticmethod
    def add_work_item(
        *,
        visit_id: UUID,
        department: str,
        actor_user_id: int | None,
        catalog_item_id: UUID | None = None,
        **fields,
    ):
        """
        Attach one work item for `department`; dispatches to the owning app.
        """
        department = parse_department(department)

        if department == Department.LAB:
            from hd_core.lab.services import LabService

            return LabService.add_result(
                visit_id=visit_id, actor_user_id=actor_user_id, test_id=catalog_item_id, **fields
            )

        if department == Department.PHARMACY:
            from hd_core.pharmacy.services import PharmacyService

            return PharmacyService.add_prescription(
                visit_id=visit_id, actor_user_id=actor_user_id, drug_id=catalog_item_id, **fields
            )

        from hd_core.doctor.services import DoctorService

        if catalog_item_id is not None:
            raise ValidationError({"catalog_item_id": "Diagnoses are free text."})
        return DoctorService.add_diagnosis(visit_id=visit_id, actor_user_id=actor_user_id, **fields)

    @staticmethod
    @retry_once_on_conflict
    @transaction.atomic
    def complete_department(
        *,
        visit_id: UUID,
        department: str,
        actor_user_id: int | None,
        note: str = "",
    ) -> Visit:
        department = parse_department(department)
        visit = lock_visit(visit_id)
        ensure_not_terminal(visit)

        if visit.is_done(department):
            raise AlreadyCompleted(visit_id=str(visit.id), department=str(department))

        if not getattr(visit, WORK_ITEM_RELATIONS[department]).exists():
            raise EmptyDepartment(visit_id=str(visit.id), department=str(department))

        field = flag_field(department)
        flags = visit.flag_kwargs()
        flags[field] = True
        new_status = derive_status(**flags)

        now = timezone.now()
        updates = {field: True, "status": new_status, "updated_at": now}
        if new_status == VisitStatus.COMPLETED:
            updates["completed_at"] = now

        previous = visit.status
        visit = VisitWorkflowService._compare_and_set(visit, **updates)

        VisitWorkflowService._record_transition(
            visit=visit,
            event=COMPLETION_EVENTS[department],
            actor_user_id=actor_user_id,
            note=note,
        )

        AuditService.log(
            event_code="visit.department_completed",
            entity_type="Visit",
            entity_id=visit.id,
            actor_user_id=actor_user_id,
            metadata={"department": str(department), "from_status": previous, "to_status": visit.status},
        )

        logger.info(
            "Visit %s: %s completed, status %s -> %s",
            visit.visit_number,
            department,
            previous,
            visit.status,
        )

        publish(
            "visit.department_completed",
            _visit_payload(visit, department=str(department), actor_user_id=actor_user_id),
        )
        return visit

    # ---------------------------------------------------------------------
    # Doctor-directed selection
    # ---------------------------------------------------------------------
    @staticmethod
    @retry_once_on_conflict
    @transaction.atomic
    def select_doctor_directed_items(
        *,
        visit_id: UUID,
        actor_user_id: int | None,
        lab_test_ids: Iterable = (),
        drug_ids: Iterable = (),
    ) -> Visit:
        """
        One-time initialization of the lab/pharmacy allow-lists.

        Not a status transition: audited and published, no history entry.
        """
        visit = lock_visit(visit_id)

        if not visit.is_doctor_directed:
            raise NotDoctorDirected(visit_id=str(visit.id), variant=visit.variant)
        ensure_not_terminal(visit)

        current = visit.restrictions
        if not current.is_empty:
            raise AlreadySelected(
                visit_id=str(visit.id),
                lab_test_ids=list(current.lab_test_ids),
                drug_ids=list(current.drug_ids),
            )

        selection = RestrictionSet.build(lab_test_ids=lab_test_ids, drug_ids=drug_ids)
        if selection.is_empty:
            raise ValidationError({"detail": "Select at least one lab test or drug."})

        errors = {}
        unknown_tests = sorted(set(selection.lab_test_ids) - active_lab_test_ids(selection.lab_test_ids))
        if unknown_tests:
            errors["lab_test_ids"] = [f"Unknown or inactive lab test: {i}" for i in unknown_tests]
        unknown_drugs = sorted(set(selection.drug_ids) - active_drug_ids(selection.drug_ids))
        if unknown_drugs:
            errors["drug_ids"] = [f"Unknown or inactive drug: {i}" for i in unknown_drugs]
        if errors:
            raise ValidationError(errors)

        visit = VisitWorkflowService._compare_and_set(
            visit,
            restricted_lab_test_ids=list(selection.lab_test_ids),
            restricted_drug_ids=list(selection.drug_ids),
            items_selected_at=timezone.now(),
        )

        AuditService.log(
            event_code="visit.items_selected",
            entity_type="Visit",
            entity_id=visit.id,
            actor_user_id=actor_user_id,
            metadata={"lab_test_ids": list(selection.lab_test_ids), "drug_ids": list(selection.drug_ids)},
        )

        logger.info(
            "Visit %s: doctor selected %s lab test(s), %s drug(s)",
            visit.visit_number,
            len(selection.lab_test_ids),
            len(selection.drug_ids),
        )

        publish(
            "visit.items_selected",
            _visit_payload(
                visit,
                lab_selected=bool(selection.lab_test_ids),
                pharmacy_selected=bool(selection.drug_ids),
                actor_user_id=actor_user_id,
            ),
        )
        return visit

    # ---------------------------------------------------------------------
    # Front-desk actions
    # ---------------------------------------------------------------------
    @staticmethod
    @retry_once_on_conflict
    @transaction.atomic
    def force_close(*, visit_id: UUID, actor_user_id: int | None, reason: str = "") -> Visit:
        visit = lock_visit(visit_id)
        if visit.is_terminal:
            raise AlreadyTerminal(visit_id=str(visit.id), status=visit.status)

        outstanding = visit.outstanding_departments()
        previous = visit.status
        now = timezone.now()

        visit = VisitWorkflowService._compare_and_set(
            visit,
            status=VisitStatus.CLOSED_INCOMPLETE,
            closed_at=now,
            closed_by_id=actor_user_id,
            closed_reason=reason or "",
            updated_at=now,
        )

        VisitWorkflowService._record_transition(
            visit=visit,
            event=HistoryEvent.FORCE_CLOSED,
            actor_user_id=actor_user_id,
            note=reason,
        )

        AuditService.log(
            event_code="visit.force_closed",
            entity_type="Visit",
            entity_id=visit.id,
            actor_user_id=actor_user_id,
            metadata={"from_status": previous, "outstanding": outstanding, "reason": reason or ""},
        )

        logger.info("Visit %s force-closed from %s (outstanding: %s)", visit.visit_number, previous, outstanding)

        publish(
            "visit.force_closed",
            _visit_payload(visit, outstanding=outstanding, reason=reason or "", actor_user_id=actor_user_id),
        )
        return visit

    @staticmethod
    @transaction.atomic
    def send_reminder(*, visit_id: UUID, role: str, actor_user_id: int | None, message: str = "") -> Visit:
        """
        Nudge a department about an open visit. Does not touch visit state.
        """
        if role not in DEPARTMENT_ROLES.values():
            raise ValidationError({"role": f"Unknown department role: {role!r}."})

        visit = Visit.objects.get(id=visit_id)
        if visit.is_terminal:
            raise VisitTerminal(visit_id=str(visit.id), status=visit.status)

        AuditService.log(
            event_code="visit.reminder_sent",
            entity_type="Visit",
            entity_id=visit.id,
            actor_user_id=actor_user_id,
            metadata={"role": role},
        )

        publish(
            "visit.reminder",
            _visit_payload(visit, role=role, message=message or "", actor_user_id=actor_user_id),
        )
        return visit
