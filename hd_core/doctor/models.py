# hd_core/doctor/models.py
from django.db import models

from hd_core.common.models import UUIDModel
from hd_core.visits.models import Visit


class Diagnosis(UUIDModel):
    visit = models.ForeignKey(Visit, on_delete=models.PROTECT, related_name="diagnoses")
    diagnosis = models.TextField()
    notes = models.TextField(blank=True, default="")
    created_by_id = models.IntegerField(null=True, blank=True)

    class Meta:
        db_table = "doctor_diagnosis"
        ordering = ["created_at", "id"]
        verbose_name_plural = "diagnoses"
        indexes = [models.Index(fields=["visit", "created_at"])]

    def __str__(self) -> str:
        return self.diagnosis[:80]
