# hd_core/pharmacy/admin.py
from __future__ import annotations

from django.contrib import admin

from hd_core.pharmacy.models import Prescription


@admin.register(Prescription)
class PrescriptionAdmin(admin.ModelAdmin):
    list_display = ("id", "visit", "medication_name", "dosage", "quantity", "created_by_id", "created_at")
    search_fields = ("id", "medication_name", "visit__visit_number")
    readonly_fields = ("visit", "drug", "created_by_id", "created_at", "updated_at")
    ordering = ("-created_at",)
