# hd_core/conftest.py
import pytest
from django.contrib.auth import get_user_model
from django.contrib.auth.models import Group
from rest_framework.test import APIClient

from hd_core.catalog.models import (
    Drug,
    LabPanel,
    LabPanelItem,
    LabTest,
    PrescriptionSet,
    PrescriptionSetItem,
)
from hd_core.patients.models import Patient


def make_user(username: str, *roles: str):
    """
    User with the given Django groups (roles). No groups => READONLY.
    """
    User = get_user_model()
    user = User.objects.create_user(username=username, password="testpass", is_active=True)
    for role in roles:
        group, _ = Group.objects.get_or_create(name=role)
        user.groups.add(group)
    return user


def client_for(user) -> APIClient:
    c = APIClient()
    c.force_authenticate(user=user)
    return c


@pytest.fixture
def user(db):
    """Default test user: ADMIN."""
    return make_user("admin", "ADMIN")


@pytest.fixture
def api_client(user):
    return client_for(user)


@pytest.fixture
def desk_user(db):
    return make_user("desk", "INQUIRY")


@pytest.fixture
def lab_user(db):
    return make_user("lab", "LAB")


@pytest.fixture
def pharmacist(db):
    return make_user("pharmacist", "PHARMACIST")


@pytest.fixture
def doctor(db):
    return make_user("doctor", "DOCTOR")


@pytest.fixture
def readonly_user(db):
    return make_user("viewer")


@pytest.fixture
def desk_client(desk_user):
    return client_for(desk_user)


@pytest.fixture
def lab_client(lab_user):
    return client_for(lab_user)


@pytest.fixture
def pharmacy_client(pharmacist):
    return client_for(pharmacist)


@pytest.fixture
def doctor_client(doctor):
    return client_for(doctor)


@pytest.fixture
def readonly_client(readonly_user):
    return client_for(readonly_user)


@pytest.fixture
def patient(db):
    return Patient.objects.create(full_name="Test Patient", phone="0700000001")


@pytest.fixture
def other_patient(db):
    return Patient.objects.create(full_name="Other Patient", phone="0700000002")


# ---------------------------------------------------------------------------
# Catalog
# ---------------------------------------------------------------------------
@pytest.fixture
def lab_tests(db):
    return [
        LabTest.objects.create(code="hb", name="Haemoglobin", unit="g/dL", normal_range_min="12", normal_range_max="16"),
        LabTest.objects.create(code="fbs", name="Fasting blood sugar", unit="mg/dL", normal_range_text="70 - 100"),
        LabTest.objects.create(code="wbc", name="White cell count", unit="10^9/L", normal_range_max="11"),
    ]


@pytest.fixture
def lab_panel(lab_tests):
    panel = LabPanel.objects.create(name="Basic panel")
    for i, test in enumerate(lab_tests[:2]):
        LabPanelItem.objects.create(panel=panel, test=test, position=i)
    return panel


@pytest.fixture
def drugs(db):
    return [
        Drug.objects.create(code="pcm", name="Paracetamol", form="tablet", strength="500mg"),
        Drug.objects.create(code="amox", name="Amoxicillin", form="capsule", strength="250mg"),
        Drug.objects.create(code="ors", name="Oral rehydration salts", form="sachet"),
    ]


@pytest.fixture
def prescription_set(drugs):
    pset = PrescriptionSet.objects.create(name="Fever kit")
    PrescriptionSetItem.objects.create(prescription_set=pset, drug=drugs[0], default_dosage="1 tab tds", position=0)
    PrescriptionSetItem.objects.create(prescription_set=pset, drug=drugs[2], default_dosage="1 sachet after each stool", position=1)
    return pset


# ---------------------------------------------------------------------------
# Visits (created through the workflow service so history/events fire)
# ---------------------------------------------------------------------------
@pytest.fixture
def visit(patient, desk_user):
    from hd_core.visits.services import VisitWorkflowService

    return VisitWorkflowService.create_visit(patient_id=patient.id, actor_user_id=desk_user.id)


@pytest.fixture
def directed_visit(other_patient, desk_user):
    from hd_core.visits.models import VisitVariant
    from hd_core.visits.services import VisitWorkflowService

    return VisitWorkflowService.create_visit(
        patient_id=other_patient.id,
        actor_user_id=desk_user.id,
        variant=VisitVariant.DOCTOR_DIRECTED,
    )
