# hd_core/catalog/tests/test_catalog_api.py
import pytest

from hd_core.catalog.models import LabTest
from hd_core.catalog.selectors import active_drug_ids, active_lab_test_ids

pytestmark = pytest.mark.django_db


@pytest.mark.parametrize(
    "fields, expected",
    [
        ({"normal_range_text": "negative"}, "negative"),
        ({"normal_range_min": "4", "normal_range_max": "10"}, "4 - 10"),
        ({"normal_range_min": "60"}, "≥ 60"),
        ({"normal_range_max": "200"}, "≤ 200"),
        ({}, ""),
    ],
)
def test_normal_range_display(fields, expected):
    assert LabTest(name="x", **fields).normal_range_display() == expected


def test_lab_tests_hide_inactive_unless_asked(readonly_client, lab_tests):
    lab_tests[2].is_active = False
    lab_tests[2].save()

    res = readonly_client.get("/api/v1/catalog/lab-tests/")
    assert res.status_code == 200
    assert {t["name"] for t in res.json()} == {"Haemoglobin", "Fasting blood sugar"}

    res = readonly_client.get("/api/v1/catalog/lab-tests/", {"include_inactive": "true"})
    assert len(res.json()) == 3

    # direct lookups still resolve inactive entries
    res = readonly_client.get(f"/api/v1/catalog/lab-tests/{lab_tests[2].id}/")
    assert res.status_code == 200
    assert res.json()["normal_range"] == "≤ 11"


def test_drug_search(readonly_client, drugs):
    res = readonly_client.get("/api/v1/catalog/drugs/", {"q": "amox"})
    assert [d["display_name"] for d in res.json()] == ["Amoxicillin 250mg (capsule)"]


def test_panels_and_sets_list_their_items_in_order(readonly_client, lab_panel, prescription_set):
    panel = readonly_client.get(f"/api/v1/catalog/lab-panels/{lab_panel.id}/").json()
    assert [i["test"]["name"] for i in panel["items"]] == ["Haemoglobin", "Fasting blood sugar"]

    pset = readonly_client.get(f"/api/v1/catalog/prescription-sets/{prescription_set.id}/").json()
    assert [i["default_dosage"] for i in pset["items"]] == ["1 tab tds", "1 sachet after each stool"]


def test_catalog_is_read_only_over_api(api_client):
    res = api_client.post("/api/v1/catalog/drugs/", {"name": "New"}, format="json")
    assert res.status_code == 405


def test_active_id_helpers_ignore_inactive(lab_tests, drugs):
    drugs[1].is_active = False
    drugs[1].save()

    assert active_lab_test_ids([str(t.id) for t in lab_tests]) == {str(t.id) for t in lab_tests}
    assert active_drug_ids([str(d.id) for d in drugs]) == {str(drugs[0].id), str(drugs[2].id)}
