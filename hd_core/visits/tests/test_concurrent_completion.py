# hd_core/visits/tests/test_concurrent_completion.py
import threading

import pytest
from django.db import connection

from hd_core.lab.services import LabService
from hd_core.patients.models import Patient
from hd_core.pharmacy.services import PharmacyService
from hd_core.visits.exceptions import AlreadyCompleted
from hd_core.visits.models import HistoryEvent, Visit, VisitStatus
from hd_core.visits.services import VisitWorkflowService

pytestmark = pytest.mark.django_db(transaction=True)

COMPLETION_EVENTS = [HistoryEvent.LAB_COMPLETED, HistoryEvent.PHARMACY_COMPLETED, HistoryEvent.DOCTOR_COMPLETED]


def _run_concurrently(*calls):
    """
    Start every call at the same time on its own thread/connection.
    Returns a list of (result, exception) in call order.
    """
    barrier = threading.Barrier(len(calls))
    outcomes = [None] * len(calls)

    def worker(i, fn):
        try:
            barrier.wait()
            outcomes[i] = (fn(), None)
        except Exception as exc:  # collected for assertions
            outcomes[i] = (None, exc)
        finally:
            connection.close()

    threads = [threading.Thread(target=worker, args=(i, fn)) for i, fn in enumerate(calls)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=30)
    return outcomes


@pytest.fixture
def ready_visit():
    patient = Patient.objects.create(full_name="Concurrent Patient")
    visit = VisitWorkflowService.create_visit(patient_id=patient.id, actor_user_id=None)
    LabService.add_result(visit_id=visit.id, actor_user_id=None, test_name="ESR", result="10")
    PharmacyService.add_prescription(visit_id=visit.id, actor_user_id=None, medication_name="ORS", quantity=1)
    return visit


def test_lab_and_pharmacy_completing_together_both_stick(ready_visit):
    outcomes = _run_concurrently(
        lambda: VisitWorkflowService.complete_department(visit_id=ready_visit.id, department="lab", actor_user_id=None),
        lambda: VisitWorkflowService.complete_department(visit_id=ready_visit.id, department="pharmacy", actor_user_id=None),
    )

    assert [exc for _, exc in outcomes] == [None, None]

    v = Visit.objects.get(id=ready_visit.id)
    assert (v.lab_done, v.pharmacy_done, v.doctor_done) == (True, True, False)
    assert v.status == VisitStatus.PENDING_DOCTOR

    completions = list(v.history.filter(event__in=COMPLETION_EVENTS).values_list("event", flat=True))
    assert sorted(completions) == sorted([HistoryEvent.LAB_COMPLETED, HistoryEvent.PHARMACY_COMPLETED])


def test_same_department_completing_twice_only_first_wins(ready_visit):
    call = lambda: VisitWorkflowService.complete_department(  # noqa: E731
        visit_id=ready_visit.id, department="lab", actor_user_id=None
    )
    outcomes = _run_concurrently(call, call)

    errors = [exc for _, exc in outcomes if exc is not None]
    assert len(errors) == 1
    assert isinstance(errors[0], AlreadyCompleted)

    v = Visit.objects.get(id=ready_visit.id)
    assert v.lab_done is True
    assert v.history.filter(event=HistoryEvent.LAB_COMPLETED).count() == 1
