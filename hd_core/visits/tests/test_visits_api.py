# hd_core/visits/tests/test_visits_api.py
import uuid

import pytest

from hd_core.lab.services import LabService
from hd_core.notifications.models import Notification
from hd_core.visits.models import VisitStatus
from hd_core.visits.services import VisitWorkflowService

pytestmark = pytest.mark.django_db

BASE = "/api/v1/visits/"


def _error(res):
    body = res.json()
    assert "error" in body, body
    assert body["error"]["request_id"]
    return body["error"]


def _ids(res):
    return {row["id"] for row in res.json()["results"]}


def test_front_desk_creates_visit(desk_client, patient):
    res = desk_client.post(BASE, {"patient_id": str(patient.id)}, format="json")
    assert res.status_code == 201, res.data

    body = res.json()
    assert body["status"] == VisitStatus.PENDING_ALL
    assert body["variant"] == "standard"
    assert body["patient_name"] == "Test Patient"
    assert body["outstanding_departments"] == ["lab", "pharmacy", "doctor"]


def test_duplicate_open_visit_returns_409_with_existing_visit(desk_client, visit, patient):
    res = desk_client.post(BASE, {"patient_id": str(patient.id)}, format="json")
    assert res.status_code == 409

    err = _error(res)
    assert err["code"] == "open_visit_exists"
    assert err["details"]["visit_id"] == str(visit.id)
    assert err["details"]["visit_number"] == visit.visit_number
    assert err["details"]["lab_done"] is False


def test_create_replays_with_idempotency_key(desk_client, patient):
    headers = {"HTTP_IDEMPOTENCY_KEY": "visit-create-1"}
    first = desk_client.post(BASE, {"patient_id": str(patient.id)}, format="json", **headers)
    second = desk_client.post(BASE, {"patient_id": str(patient.id)}, format="json", **headers)

    assert first.status_code == second.status_code == 201
    assert first.json()["id"] == second.json()["id"]


def test_department_staff_cannot_open_visits(lab_client, patient):
    res = lab_client.post(BASE, {"patient_id": str(patient.id)}, format="json")
    assert res.status_code == 403
    assert _error(res)["code"] == "permission_denied"


def test_complete_requires_owning_department(pharmacy_client, lab_client, visit, lab_user):
    LabService.add_result(visit_id=visit.id, actor_user_id=lab_user.id, test_name="ESR", result="8")

    res = pharmacy_client.post(f"{BASE}{visit.id}/complete/", {"department": "lab"}, format="json")
    assert res.status_code == 403

    res = lab_client.post(f"{BASE}{visit.id}/complete/", {"department": "lab"}, format="json")
    assert res.status_code == 200, res.data
    assert res.json()["lab_done"] is True

    res = lab_client.post(f"{BASE}{visit.id}/complete/", {"department": "lab"}, format="json")
    assert res.status_code == 409
    assert _error(res)["code"] == "already_completed"


def test_complete_empty_department_is_409(pharmacy_client, visit):
    res = pharmacy_client.post(f"{BASE}{visit.id}/complete/", {"department": "pharmacy"}, format="json")
    assert res.status_code == 409
    err = _error(res)
    assert err["code"] == "empty_department"
    assert err["details"] == {"visit_id": str(visit.id), "department": "pharmacy"}


def test_complete_unknown_visit_is_server_error(lab_client):
    res = lab_client.post(f"{BASE}{uuid.uuid4()}/complete/", {"department": "lab"}, format="json")
    assert res.status_code == 500
    assert _error(res)["code"] == "server_error"


def test_retrieve_unknown_visit_is_404(readonly_client):
    res = readonly_client.get(f"{BASE}{uuid.uuid4()}/")
    assert res.status_code == 404
    assert _error(res)["code"] == "not_found"


def test_retrieve_includes_items_and_history(readonly_client, visit, lab_user):
    LabService.add_result(visit_id=visit.id, actor_user_id=lab_user.id, test_name="ESR", result="8")

    res = readonly_client.get(f"{BASE}{visit.id}/")
    assert res.status_code == 200
    body = res.json()
    assert [r["test_name"] for r in body["lab_results"]] == ["ESR"]
    assert body["prescriptions"] == []
    assert [h["event"] for h in body["history"]] == ["visit_opened"]

    res = readonly_client.get(f"{BASE}{visit.id}/history/")
    assert res.status_code == 200
    assert len(res.json()) == 1


def test_force_close_and_reopen_via_api(desk_client, visit, patient):
    res = desk_client.post(f"{BASE}{visit.id}/force-close/", {"reason": "Left"}, format="json")
    assert res.status_code == 200
    assert res.json()["status"] == VisitStatus.CLOSED_INCOMPLETE

    res = desk_client.post(f"{BASE}{visit.id}/force-close/", {}, format="json")
    assert res.status_code == 409
    assert _error(res)["code"] == "already_terminal"

    res = desk_client.post(BASE, {"patient_id": str(patient.id)}, format="json")
    assert res.status_code == 201


def test_doctor_selects_items(doctor_client, lab_client, directed_visit, lab_tests):
    res = doctor_client.post(
        f"{BASE}{directed_visit.id}/select-items/",
        {"lab_test_ids": [str(lab_tests[0].id)]},
        format="json",
    )
    assert res.status_code == 200, res.data
    assert res.json()["restricted_lab_test_ids"] == [str(lab_tests[0].id)]

    res = lab_client.post(
        "/api/v1/lab/results/",
        {"visit_id": str(directed_visit.id), "test_id": str(lab_tests[1].id), "result": "5"},
        format="json",
    )
    assert res.status_code == 409
    err = _error(res)
    assert err["code"] == "restricted_item"
    assert err["details"]["reason"] == "not_selected"


def test_select_items_needs_at_least_one_id(doctor_client, directed_visit):
    res = doctor_client.post(f"{BASE}{directed_visit.id}/select-items/", {}, format="json")
    assert res.status_code == 400
    assert _error(res)["code"] == "validation_error"


def test_list_filters_and_queue(readonly_client, visit, directed_visit):
    res = readonly_client.get(BASE, {"variant": "doctor_directed"})
    assert _ids(res) == {str(directed_visit.id)}

    # directed visit is not on the lab queue until the doctor selects
    res = readonly_client.get(BASE, {"queue": "lab"})
    assert _ids(res) == {str(visit.id)}

    res = readonly_client.get(BASE, {"status": "pending_all,completed"})
    assert _ids(res) == {str(visit.id), str(directed_visit.id)}

    res = readonly_client.get(BASE, {"status": "bogus"})
    assert res.status_code == 400


def test_department_staff_see_their_worklist_and_finished_visits(lab_client, visit, directed_visit, lab_user, desk_user):
    LabService.add_result(visit_id=visit.id, actor_user_id=lab_user.id, test_name="ESR", result="8")
    VisitWorkflowService.complete_department(visit_id=visit.id, department="lab", actor_user_id=lab_user.id)
    VisitWorkflowService.force_close(visit_id=directed_visit.id, actor_user_id=desk_user.id)

    res = lab_client.get(BASE)
    assert res.status_code == 200
    # closed before lab acted: not lab's business anymore
    assert _ids(res) == {str(visit.id)}


def test_reminder_notifies_department_role(desk_client, visit):
    res = desk_client.post(f"{BASE}{visit.id}/remind/", {"role": "lab", "message": "Results please"}, format="json")
    assert res.status_code == 202

    n = Notification.objects.get(kind="reminder")
    assert n.recipient_role == "LAB"
    assert n.message == "Results please"
    assert n.visit_id == visit.id


def test_reminder_rejects_non_department_role(desk_client, visit):
    res = desk_client.post(f"{BASE}{visit.id}/remind/", {"role": "inquiry"}, format="json")
    assert res.status_code == 400


def test_malformed_visit_id_does_not_route(readonly_client):
    res = readonly_client.get(f"{BASE}not-a-uuid/")
    assert res.status_code == 404
