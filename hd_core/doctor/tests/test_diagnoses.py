# hd_core/doctor/tests/test_diagnoses.py
import pytest

from hd_core.doctor.models import Diagnosis
from hd_core.visits.services import VisitWorkflowService

pytestmark = pytest.mark.django_db

BASE = "/api/v1/doctor/diagnoses/"


def test_doctor_records_and_edits_diagnosis(doctor_client, visit):
    res = doctor_client.post(BASE, {"visit_id": str(visit.id), "diagnosis": "Typhoid"}, format="json")
    assert res.status_code == 201, res.data
    diagnosis_id = res.json()["id"]

    res = doctor_client.patch(f"{BASE}{diagnosis_id}/", {"notes": "Start antibiotics"}, format="json")
    assert res.status_code == 200
    assert res.json()["notes"] == "Start antibiotics"

    res = doctor_client.get(BASE, {"visit": str(visit.id)})
    assert [d["diagnosis"] for d in res.json()] == ["Typhoid"]


def test_blank_diagnosis_rejected(doctor_client, visit):
    res = doctor_client.post(BASE, {"visit_id": str(visit.id), "diagnosis": ""}, format="json")
    assert res.status_code == 400


def test_front_desk_reads_but_cannot_write(desk_client, visit):
    res = desk_client.get(BASE, {"visit": str(visit.id)})
    assert res.status_code == 200

    res = desk_client.post(BASE, {"visit_id": str(visit.id), "diagnosis": "Flu"}, format="json")
    assert res.status_code == 403


def test_diagnosis_locked_after_doctor_completes(doctor_client, visit, doctor):
    res = doctor_client.post(BASE, {"visit_id": str(visit.id), "diagnosis": "Flu"}, format="json")
    diagnosis_id = res.json()["id"]
    VisitWorkflowService.complete_department(visit_id=visit.id, department="doctor", actor_user_id=doctor.id)

    res = doctor_client.delete(f"{BASE}{diagnosis_id}/")
    assert res.status_code == 409
    assert res.json()["error"]["code"] == "department_already_complete"
    assert Diagnosis.objects.filter(id=diagnosis_id).exists()
