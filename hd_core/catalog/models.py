# hd_core/catalog/models.py
from django.db import models

from hd_core.common.models import UUIDModel


class LabTest(UUIDModel):
    """
    Master list of lab tests. Ranges are free text because labs write them
    in whatever form the analyser reports ("4.5", "<200", "negative").
    """
    code = models.SlugField(max_length=64, blank=True, default="", db_index=True)
    name = models.CharField(max_length=255, unique=True)
    unit = models.CharField(max_length=64, blank=True, default="")
    normal_range_min = models.CharField(max_length=64, blank=True, default="")
    normal_range_max = models.CharField(max_length=64, blank=True, default="")
    normal_range_text = models.CharField(max_length=255, blank=True, default="")
    is_active = models.BooleanField(default=True, db_index=True)

    class Meta:
        db_table = "catalog_lab_test"
        ordering = ["name"]

    def __str__(self) -> str:
        return self.name

    def normal_range_display(self) -> str:
        if self.normal_range_text:
            return self.normal_range_text
        if self.normal_range_min and self.normal_range_max:
            return f"{self.normal_range_min} - {self.normal_range_max}"
        if self.normal_range_min:
            return f"≥ {self.normal_range_min}"
        if self.normal_range_max:
            return f"≤ {self.normal_range_max}"
        return ""


class LabPanel(UUIDModel):
    name = models.CharField(max_length=255)
    description = models.TextField(blank=True, default="")
    is_active = models.BooleanField(default=True, db_index=True)
    tests = models.ManyToManyField(LabTest, through="LabPanelItem", related_name="panels")

    class Meta:
        db_table = "catalog_lab_panel"
        ordering = ["name"]

    def __str__(self) -> str:
        return self.name


class LabPanelItem(models.Model):
    panel = models.ForeignKey(LabPanel, on_delete=models.CASCADE, related_name="items")
    test = models.ForeignKey(LabTest, on_delete=models.CASCADE, related_name="panel_items")
    position = models.PositiveIntegerField(default=0)

    class Meta:
        db_table = "catalog_lab_panel_item"
        ordering = ["position", "id"]
        constraints = [
            models.UniqueConstraint(fields=["panel", "test"], name="uq_lab_panel_item"),
        ]


class Drug(UUIDModel):
    code = models.SlugField(max_length=64, blank=True, default="", db_index=True)
    name = models.CharField(max_length=255, unique=True)
    form = models.CharField(max_length=64, blank=True, default="")  # tablet, syrup, ...
    strength = models.CharField(max_length=64, blank=True, default="")
    manufacturer = models.CharField(max_length=255, blank=True, default="")
    is_active = models.BooleanField(default=True, db_index=True)

    class Meta:
        db_table = "catalog_drug"
        ordering = ["name"]

    def __str__(self) -> str:
        return self.display_name

    @property
    def display_name(self) -> str:
        label = self.name
        if self.strength:
            label += f" {self.strength}"
        if self.form:
            label += f" ({self.form})"
        return label


class PrescriptionSet(UUIDModel):
    name = models.CharField(max_length=255)
    description = models.TextField(blank=True, default="")
    is_active = models.BooleanField(default=True, db_index=True)
    drugs = models.ManyToManyField(Drug, through="PrescriptionSetItem", related_name="prescription_sets")

    class Meta:
        db_table = "catalog_prescription_set"
        ordering = ["name"]

    def __str__(self) -> str:
        return self.name


class PrescriptionSetItem(models.Model):
    prescription_set = models.ForeignKey(PrescriptionSet, on_delete=models.CASCADE, related_name="items")
    drug = models.ForeignKey(Drug, on_delete=models.CASCADE, related_name="set_items")
    default_dosage = models.CharField(max_length=255, blank=True, default="")
    position = models.PositiveIntegerField(default=0)

    class Meta:
        db_table = "catalog_prescription_set_item"
        ordering = ["position", "id"]
        constraints = [
            models.UniqueConstraint(fields=["prescription_set", "drug"], name="uq_prescription_set_item"),
        ]
