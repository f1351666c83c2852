# hd_core/visits/models.py
import uuid

from django.core.exceptions import ValidationError
from django.db import models
from django.db.models import Q

from hd_core.common.models import UUIDModel
from hd_core.patients.models import Patient


class VisitStatus(models.TextChoices):
    PENDING_ALL = "pending_all", "Pending (all departments)"
    PENDING_LAB = "pending_lab", "Pending lab"
    PENDING_PHARMACY = "pending_pharmacy", "Pending pharmacy"
    PENDING_DOCTOR = "pending_doctor", "Pending doctor"
    COMPLETED = "completed", "Completed"
    CLOSED_INCOMPLETE = "closed_incomplete", "Closed incomplete"


class VisitVariant(models.TextChoices):
    STANDARD = "standard", "Standard"
    DOCTOR_DIRECTED = "doctor_directed", "Doctor directed"


class Department(models.TextChoices):
    LAB = "lab", "Laboratory"
    PHARMACY = "pharmacy", "Pharmacy"
    DOCTOR = "doctor", "Doctor"


class HistoryEvent(models.TextChoices):
    VISIT_OPENED = "visit_opened", "Visit opened"
    LAB_COMPLETED = "lab_completed", "Lab completed"
    PHARMACY_COMPLETED = "pharmacy_completed", "Pharmacy completed"
    DOCTOR_COMPLETED = "doctor_completed", "Doctor completed"
    FORCE_CLOSED = "force_closed", "Force closed"


TERMINAL_STATUSES = (VisitStatus.COMPLETED, VisitStatus.CLOSED_INCOMPLETE)
OPEN_STATUSES = (
    VisitStatus.PENDING_ALL,
    VisitStatus.PENDING_LAB,
    VisitStatus.PENDING_PHARMACY,
    VisitStatus.PENDING_DOCTOR,
)


class Visit(UUIDModel):
    """
    One episode of a patient going through lab, pharmacy and the attending doctor.

    The three departments act independently; `status` is derived from the
    completion flags (see hd_core.visits.workflow) and must never be written
    by callers.
    """
    visit_number = models.CharField(max_length=32, unique=True, editable=False)
    patient = models.ForeignKey(Patient, on_delete=models.PROTECT, related_name="visits")

    variant = models.CharField(
        max_length=32,
        choices=VisitVariant.choices,
        default=VisitVariant.STANDARD,
        editable=False,
    )
    status = models.CharField(
        max_length=32,
        choices=VisitStatus.choices,
        default=VisitStatus.PENDING_ALL,
        db_index=True,
    )

    lab_done = models.BooleanField(default=False)
    pharmacy_done = models.BooleanField(default=False)
    doctor_done = models.BooleanField(default=False)

    # Doctor-directed allow-lists (catalog ids as strings)
    restricted_lab_test_ids = models.JSONField(default=list, blank=True)
    restricted_drug_ids = models.JSONField(default=list, blank=True)
    items_selected_at = models.DateTimeField(null=True, blank=True)

    completed_at = models.DateTimeField(null=True, blank=True)
    closed_at = models.DateTimeField(null=True, blank=True)
    closed_reason = models.TextField(blank=True, default="")

    created_by_id = models.IntegerField(null=True, blank=True)
    closed_by_id = models.IntegerField(null=True, blank=True)

    class Meta:
        db_table = "visits_visit"
        indexes = [
            models.Index(fields=["patient", "status"]),
            models.Index(fields=["status", "created_at"]),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=["patient"],
                condition=Q(status__in=OPEN_STATUSES),
                name="uq_open_visit_per_patient",
            ),
        ]

    def __str__(self) -> str:
        return f"Visit({self.visit_number}, {self.status})"

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    @property
    def is_doctor_directed(self) -> bool:
        return self.variant == VisitVariant.DOCTOR_DIRECTED

    def flags(self) -> dict[str, bool]:
        return {
            Department.LAB: self.lab_done,
            Department.PHARMACY: self.pharmacy_done,
            Department.DOCTOR: self.doctor_done,
        }

    def is_done(self, department: str) -> bool:
        return self.flags()[Department(department)]

    @property
    def restrictions(self):
        from hd_core.visits.workflow import RestrictionSet

        return RestrictionSet.from_visit(self)

    def outstanding_departments(self) -> list[str]:
        from hd_core.visits.workflow import outstanding_departments

        return outstanding_departments(**self.flag_kwargs())

    def flag_kwargs(self) -> dict[str, bool]:
        return {
            "lab_done": self.lab_done,
            "pharmacy_done": self.pharmacy_done,
            "doctor_done": self.doctor_done,
        }


class VisitStatusHistory(models.Model):
    """
    Append-only trail of visit status transitions.
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    visit = models.ForeignKey(Visit, on_delete=models.PROTECT, related_name="history")

    status = models.CharField(max_length=32, choices=VisitStatus.choices)
    event = models.CharField(max_length=32, choices=HistoryEvent.choices)
    note = models.TextField(blank=True, default="")
    changed_by_id = models.IntegerField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True, db_index=True)

    class Meta:
        db_table = "visits_status_history"
        ordering = ["created_at", "id"]
        indexes = [
            models.Index(fields=["visit", "created_at"]),
        ]

    def __str__(self) -> str:
        return f"{self.event} -> {self.status}"

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise ValidationError("VisitStatusHistory is append-only and cannot be modified.")
        return super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ValidationError("VisitStatusHistory is append-only and cannot be deleted.")
