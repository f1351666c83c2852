# hd_core/lab/models.py
from django.db import models

from hd_core.catalog.models import LabTest
from hd_core.common.models import UUIDModel
from hd_core.visits.models import Visit


class LabResult(UUIDModel):
    """
    One test result recorded by the lab against a visit.

    `test` is optional: free-text results are allowed unless the visit is
    restricted by the doctor. Name/unit/range are copied from the catalog at
    entry time so later catalog edits do not rewrite history.
    """
    visit = models.ForeignKey(Visit, on_delete=models.PROTECT, related_name="lab_results")
    test = models.ForeignKey(LabTest, on_delete=models.PROTECT, null=True, blank=True, related_name="results")

    test_name = models.CharField(max_length=255)
    result = models.CharField(max_length=255, blank=True, default="")
    unit = models.CharField(max_length=64, blank=True, default="")
    normal_range = models.CharField(max_length=255, blank=True, default="")
    notes = models.TextField(blank=True, default="")

    created_by_id = models.IntegerField(null=True, blank=True)

    class Meta:
        db_table = "lab_result"
        ordering = ["created_at", "id"]
        indexes = [models.Index(fields=["visit", "created_at"])]

    def __str__(self) -> str:
        return f"{self.test_name}: {self.result}"
