# hd_core/pharmacy/models.py
from django.db import models
from django.db.models import Q

from hd_core.catalog.models import Drug
from hd_core.common.models import UUIDModel
from hd_core.visits.models import Visit


class Prescription(UUIDModel):
    """
    One dispensed line. `medication_name` is frozen at entry time.
    """
    visit = models.ForeignKey(Visit, on_delete=models.PROTECT, related_name="prescriptions")
    drug = models.ForeignKey(Drug, on_delete=models.PROTECT, null=True, blank=True, related_name="prescriptions")

    medication_name = models.CharField(max_length=255)
    dosage = models.CharField(max_length=255, blank=True, default="")
    quantity = models.PositiveIntegerField()
    instructions = models.TextField(blank=True, default="")

    created_by_id = models.IntegerField(null=True, blank=True)

    class Meta:
        db_table = "pharmacy_prescription"
        ordering = ["created_at", "id"]
        indexes = [models.Index(fields=["visit", "created_at"])]
        constraints = [
            models.CheckConstraint(condition=Q(quantity__gt=0), name="ck_prescription_quantity_positive"),
        ]

    def __str__(self) -> str:
        return f"{self.medication_name} x{self.quantity}"
