# hd_core/api/urls.py
from __future__ import annotations

from django.urls import path
from rest_framework.routers import DefaultRouter

from hd_core.audit.api.views import AuditEventViewSet
from hd_core.catalog.api.views import DrugViewSet, LabPanelViewSet, LabTestViewSet, PrescriptionSetViewSet
from hd_core.common.api.auth_views import LoginView, LogoutView, MeView, RefreshView
from hd_core.doctor.api.views import DiagnosisViewSet
from hd_core.lab.api.views import LabResultViewSet
from hd_core.notifications.api.views import NotificationViewSet
from hd_core.patients.api.views import PatientViewSet
from hd_core.pharmacy.api.views import PrescriptionViewSet
from hd_core.visits.api.views import VisitViewSet

router = DefaultRouter()

router.register(r"patients", PatientViewSet, basename="patients")
router.register(r"visits", VisitViewSet, basename="visits")

# Department work items
router.register(r"lab/results", LabResultViewSet, basename="lab-results")
router.register(r"pharmacy/prescriptions", PrescriptionViewSet, basename="pharmacy-prescriptions")
router.register(r"doctor/diagnoses", DiagnosisViewSet, basename="doctor-diagnoses")

# Catalog (read-only)
router.register(r"catalog/lab-tests", LabTestViewSet, basename="catalog-lab-tests")
router.register(r"catalog/lab-panels", LabPanelViewSet, basename="catalog-lab-panels")
router.register(r"catalog/drugs", DrugViewSet, basename="catalog-drugs")
router.register(r"catalog/prescription-sets", PrescriptionSetViewSet, basename="catalog-prescription-sets")

router.register(r"notifications", NotificationViewSet, basename="notifications")
router.register(r"audit/events", AuditEventViewSet, basename="audit-events")

urlpatterns = [
    path("auth/login/", LoginView.as_view(), name="login"),
    path("auth/refresh/", RefreshView.as_view(), name="refresh"),
    path("auth/logout/", LogoutView.as_view(), name="logout"),
    path("me/", MeView.as_view(), name="me"),

    # Router URLs last (so explicit paths win if ever overlapping)
    *router.urls,
]
