# hd_core/visits/tests/test_visit_lifecycle.py
import re
import uuid

import pytest
from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import IntegrityError, transaction
from django.utils import timezone

from hd_core.audit.models import AuditEvent
from hd_core.doctor.services import DoctorService
from hd_core.lab.services import LabService
from hd_core.pharmacy.services import PharmacyService
from hd_core.visits.exceptions import (
    AlreadyCompleted,
    AlreadyTerminal,
    DepartmentAlreadyComplete,
    EmptyDepartment,
    OpenVisitExists,
    VisitIntegrityError,
    VisitTerminal,
)
from hd_core.visits.guards import lock_visit
from hd_core.visits.models import HistoryEvent, Visit, VisitStatus, VisitStatusHistory
from hd_core.visits.services import VisitWorkflowService, next_visit_number

pytestmark = pytest.mark.django_db


def _flags(v: Visit):
    return (v.lab_done, v.pharmacy_done, v.doctor_done)


def _complete(visit, department, user):
    return VisitWorkflowService.complete_department(visit_id=visit.id, department=department, actor_user_id=user.id)


def test_new_visit_starts_pending_all_with_opened_history(visit):
    assert _flags(visit) == (False, False, False)
    assert visit.status == VisitStatus.PENDING_ALL
    assert re.fullmatch(r"\d{8}-\d{4}", visit.visit_number)

    history = list(visit.history.all())
    assert [h.event for h in history] == [HistoryEvent.VISIT_OPENED]
    assert history[0].status == VisitStatus.PENDING_ALL

    assert AuditEvent.objects.filter(event_code="visit.created", entity_id=visit.id).exists()


def test_standard_visit_runs_through_all_departments(visit, lab_user, pharmacist, doctor, lab_tests, drugs):
    LabService.add_result(visit_id=visit.id, actor_user_id=lab_user.id, test_id=lab_tests[0].id, result="13.1")
    v = _complete(visit, "lab", lab_user)
    assert _flags(v) == (True, False, False)
    # two departments still outstanding
    assert v.status == VisitStatus.PENDING_ALL

    PharmacyService.add_prescription(visit_id=visit.id, actor_user_id=pharmacist.id, drug_id=drugs[0].id, quantity=10)
    v = _complete(visit, "pharmacy", pharmacist)
    assert _flags(v) == (True, True, False)
    assert v.status == VisitStatus.PENDING_DOCTOR

    DoctorService.add_diagnosis(visit_id=visit.id, actor_user_id=doctor.id, diagnosis="Malaria")
    v = _complete(visit, "doctor", doctor)
    assert _flags(v) == (True, True, True)
    assert v.status == VisitStatus.COMPLETED
    assert v.completed_at is not None

    events = list(v.history.values_list("event", "status"))
    assert events == [
        (HistoryEvent.VISIT_OPENED, VisitStatus.PENDING_ALL),
        (HistoryEvent.LAB_COMPLETED, VisitStatus.PENDING_ALL),
        (HistoryEvent.PHARMACY_COMPLETED, VisitStatus.PENDING_DOCTOR),
        (HistoryEvent.DOCTOR_COMPLETED, VisitStatus.COMPLETED),
    ]


def test_departments_can_finish_in_any_order(visit, lab_user, doctor):
    DoctorService.add_diagnosis(visit_id=visit.id, actor_user_id=doctor.id, diagnosis="URTI")
    v = _complete(visit, "doctor", doctor)
    assert v.status == VisitStatus.PENDING_ALL

    LabService.add_result(visit_id=visit.id, actor_user_id=lab_user.id, test_name="Malaria RDT", result="negative")
    v = _complete(visit, "lab", lab_user)
    assert v.status == VisitStatus.PENDING_PHARMACY


def test_second_open_visit_is_rejected_with_existing_details(visit, patient, desk_user, lab_user):
    LabService.add_result(visit_id=visit.id, actor_user_id=lab_user.id, test_name="ESR", result="12")
    _complete(visit, "lab", lab_user)

    with pytest.raises(OpenVisitExists) as exc:
        VisitWorkflowService.create_visit(patient_id=patient.id, actor_user_id=desk_user.id)

    details = exc.value.details
    assert details["visit_id"] == str(visit.id)
    assert details["visit_number"] == visit.visit_number
    assert details["status"] == VisitStatus.PENDING_ALL
    assert details["lab_done"] is True
    assert details["pharmacy_done"] is False
    assert details["created_at"]

    assert Visit.objects.filter(patient=patient).count() == 1


def test_force_close_frees_patient_for_new_visit(visit, patient, desk_user, lab_user, pharmacist):
    LabService.add_result(visit_id=visit.id, actor_user_id=lab_user.id, test_name="ESR", result="12")
    _complete(visit, "lab", lab_user)
    PharmacyService.add_prescription(visit_id=visit.id, actor_user_id=pharmacist.id, medication_name="ORS", quantity=2)
    v = _complete(visit, "pharmacy", pharmacist)
    assert v.status == VisitStatus.PENDING_DOCTOR

    closed = VisitWorkflowService.force_close(visit_id=visit.id, actor_user_id=desk_user.id, reason="Patient left")
    assert closed.status == VisitStatus.CLOSED_INCOMPLETE
    # flags keep showing who finished
    assert _flags(closed) == (True, True, False)
    assert closed.closed_reason == "Patient left"
    assert closed.closed_by_id == desk_user.id
    assert closed.history.last().event == HistoryEvent.FORCE_CLOSED

    again = VisitWorkflowService.create_visit(patient_id=patient.id, actor_user_id=desk_user.id)
    assert again.id != visit.id
    assert again.status == VisitStatus.PENDING_ALL


def test_terminal_visit_rejects_every_mutation(visit, desk_user, lab_user, doctor):
    LabService.add_result(visit_id=visit.id, actor_user_id=lab_user.id, test_name="ESR", result="12")
    VisitWorkflowService.force_close(visit_id=visit.id, actor_user_id=desk_user.id)

    with pytest.raises(VisitTerminal):
        _complete(visit, "lab", lab_user)
    with pytest.raises(VisitTerminal):
        LabService.add_result(visit_id=visit.id, actor_user_id=lab_user.id, test_name="CRP", result="3")
    with pytest.raises(VisitTerminal):
        DoctorService.add_diagnosis(visit_id=visit.id, actor_user_id=doctor.id, diagnosis="late")
    with pytest.raises(AlreadyTerminal):
        VisitWorkflowService.force_close(visit_id=visit.id, actor_user_id=desk_user.id)

    visit.refresh_from_db()
    assert _flags(visit) == (False, False, False)
    assert visit.lab_results.count() == 1


def test_completing_twice_fails_without_mutation(visit, lab_user):
    LabService.add_result(visit_id=visit.id, actor_user_id=lab_user.id, test_name="ESR", result="12")
    first = _complete(visit, "lab", lab_user)
    history_count = first.history.count()

    with pytest.raises(AlreadyCompleted) as exc:
        _complete(visit, "lab", lab_user)
    assert exc.value.details == {"visit_id": str(visit.id), "department": "lab"}

    visit.refresh_from_db()
    assert visit.updated_at == first.updated_at
    assert visit.history.count() == history_count


def test_empty_department_cannot_complete(visit, pharmacist):
    with pytest.raises(EmptyDepartment):
        _complete(visit, "pharmacy", pharmacist)

    visit.refresh_from_db()
    assert visit.pharmacy_done is False


def test_items_are_locked_after_department_completes(visit, lab_user):
    lr = LabService.add_result(visit_id=visit.id, actor_user_id=lab_user.id, test_name="ESR", result="12")
    _complete(visit, "lab", lab_user)

    with pytest.raises(DepartmentAlreadyComplete):
        LabService.add_result(visit_id=visit.id, actor_user_id=lab_user.id, test_name="CRP", result="3")
    with pytest.raises(DepartmentAlreadyComplete):
        LabService.update_result(lab_result_id=lr.id, actor_user_id=lab_user.id, data={"result": "99"})
    with pytest.raises(DepartmentAlreadyComplete):
        LabService.delete_result(lab_result_id=lr.id, actor_user_id=lab_user.id)


def test_add_work_item_dispatches_by_department(visit, lab_user, pharmacist, doctor, lab_tests):
    lr = VisitWorkflowService.add_work_item(
        visit_id=visit.id,
        department="lab",
        actor_user_id=lab_user.id,
        catalog_item_id=lab_tests[0].id,
        result="14",
    )
    assert lr.test_name == "Haemoglobin"
    assert lr.unit == "g/dL"
    assert lr.normal_range == "12 - 16"

    p = VisitWorkflowService.add_work_item(
        visit_id=visit.id,
        department="pharmacy",
        actor_user_id=pharmacist.id,
        medication_name="Zinc",
        quantity=10,
    )
    assert p.drug_id is None

    d = VisitWorkflowService.add_work_item(
        visit_id=visit.id, department="doctor", actor_user_id=doctor.id, diagnosis="Diarrhoea"
    )
    assert d.visit_id == visit.id


def test_write_against_unknown_visit_is_integrity_error(lab_user):
    missing = uuid.uuid4()

    with pytest.raises(VisitIntegrityError):
        VisitWorkflowService.complete_department(visit_id=missing, department="lab", actor_user_id=lab_user.id)
    with pytest.raises(VisitIntegrityError):
        LabService.add_result(visit_id=missing, actor_user_id=lab_user.id, test_name="ESR")


def test_database_allows_one_open_visit_per_patient(visit, patient):
    with pytest.raises(IntegrityError):
        with transaction.atomic():
            Visit.objects.create(visit_number="19990101-0001", patient=patient)


def test_history_entries_are_append_only(visit):
    entry = visit.history.first()

    entry.note = "edited"
    with pytest.raises(DjangoValidationError):
        entry.save()
    with pytest.raises(DjangoValidationError):
        entry.delete()

    assert VisitStatusHistory.objects.get(id=entry.id).note == ""


def test_visit_numbers_are_sequential_within_a_day(visit, other_patient, desk_user):
    prefix, seq = visit.visit_number.split("-")
    assert next_visit_number() == f"{prefix}-{int(seq) + 1:04d}"

    second = VisitWorkflowService.create_visit(patient_id=other_patient.id, actor_user_id=desk_user.id)
    assert second.visit_number == f"{prefix}-{int(seq) + 1:04d}"


def test_flags_never_go_back(visit, lab_user, pharmacist, desk_user):
    seen = []
    LabService.add_result(visit_id=visit.id, actor_user_id=lab_user.id, test_name="ESR", result="12")
    seen.append(_flags(_complete(visit, "lab", lab_user)))
    PharmacyService.add_prescription(visit_id=visit.id, actor_user_id=pharmacist.id, medication_name="ORS", quantity=1)
    seen.append(_flags(_complete(visit, "pharmacy", pharmacist)))
    seen.append(_flags(VisitWorkflowService.force_close(visit_id=visit.id, actor_user_id=desk_user.id)))

    for before, after in zip(seen, seen[1:]):
        assert all(a or not b for b, a in zip(before, after))


def test_visit_numbers_keep_counting_past_four_digits(patient, other_patient, desk_user):
    prefix = timezone.localdate().strftime("%Y%m%d")
    Visit.objects.create(
        visit_number=f"{prefix}-9999", patient=patient, status=VisitStatus.CLOSED_INCOMPLETE
    )

    first = VisitWorkflowService.create_visit(patient_id=patient.id, actor_user_id=desk_user.id)
    assert first.visit_number == f"{prefix}-10000"

    VisitWorkflowService.force_close(visit_id=first.id, actor_user_id=desk_user.id)
    assert next_visit_number() == f"{prefix}-10001"

    second = VisitWorkflowService.create_visit(patient_id=other_patient.id, actor_user_id=desk_user.id)
    assert second.visit_number == f"{prefix}-10001"


def test_malformed_visit_id_is_integrity_error(lab_user):
    with pytest.raises(VisitIntegrityError):
        VisitWorkflowService.complete_department(visit_id="not-a-uuid", department="lab", actor_user_id=lab_user.id)
    with pytest.raises(VisitIntegrityError), transaction.atomic():
        lock_visit("not-a-uuid")
