# hd_core/patients/models.py
from django.db import models
from django.db.models import Q
from hd_core.common.models import UUIDModel


class Patient(UUIDModel):
    """
    Patient demographics. Owned by front desk; the visit workflow only reads it.
    """
    full_name = models.CharField(max_length=255)
    national_id = models.CharField(max_length=64, null=True, blank=True)
    phone = models.CharField(max_length=32, blank=True)
    gender = models.CharField(max_length=32, blank=True)
    date_of_birth = models.DateField(null=True, blank=True)
    address = models.CharField(max_length=255, blank=True)

    class Meta:
        db_table = "patients_patient"
        constraints = [
            models.UniqueConstraint(
                fields=["national_id"],
                condition=Q(national_id__isnull=False),
                name="uq_patient_national_id",
            ),
        ]
        indexes = [
            models.Index(fields=["full_name"]),
            models.Index(fields=["phone"]),
        ]

    def __str__(self) -> str:
        return f"{self.full_name} ({self.national_id or '-'})"
