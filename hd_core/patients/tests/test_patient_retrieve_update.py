# hd_core/patients/tests/test_patient_retrieve_update.py
import pytest

pytestmark = pytest.mark.django_db

BASE = "/api/v1/patients/"


def test_patient_retrieve_ok(desk_client):
    create = desk_client.post(BASE, {"full_name": "Pat One", "national_id": "NID-001", "phone": "0711111111"}, format="json")
    assert create.status_code == 201, create.data
    pid = create.data["id"]

    r = desk_client.get(f"{BASE}{pid}/")
    assert r.status_code == 200, r.data
    assert r.data["id"] == pid
    assert r.data["national_id"] == "NID-001"


def test_patient_patch_updates_fields(desk_client):
    pid = desk_client.post(BASE, {"full_name": "Pat Two"}, format="json").data["id"]

    p = desk_client.patch(f"{BASE}{pid}/", {"phone": "0722222222", "address": "Plot 4"}, format="json")
    assert p.status_code == 200, p.data
    assert p.data["phone"] == "0722222222"
    assert p.data["address"] == "Plot 4"

    empty = desk_client.patch(f"{BASE}{pid}/", {}, format="json")
    assert empty.status_code == 400


def test_duplicate_national_id_rejected_blank_allowed(desk_client):
    assert desk_client.post(BASE, {"full_name": "A", "national_id": "NID-9"}, format="json").status_code == 201
    dup = desk_client.post(BASE, {"full_name": "B", "national_id": "NID-9"}, format="json")
    assert dup.status_code == 400

    # blank national ids never collide
    assert desk_client.post(BASE, {"full_name": "C", "national_id": ""}, format="json").status_code == 201
    assert desk_client.post(BASE, {"full_name": "D", "national_id": ""}, format="json").status_code == 201


def test_search_and_visit_history(readonly_client, visit, patient, other_patient):
    res = readonly_client.get(BASE, {"q": "Other"})
    assert [p["id"] for p in res.json()] == [str(other_patient.id)]

    res = readonly_client.get(f"{BASE}{patient.id}/visits/")
    assert res.status_code == 200
    assert [v["visit_number"] for v in res.json()] == [visit.visit_number]


def test_only_front_desk_registers_patients(lab_client):
    res = lab_client.post(BASE, {"full_name": "Nope"}, format="json")
    assert res.status_code == 403
