# hd_core/doctor/admin.py
from __future__ import annotations

from django.contrib import admin

from hd_core.doctor.models import Diagnosis


@admin.register(Diagnosis)
class DiagnosisAdmin(admin.ModelAdmin):
    list_display = ("id", "visit", "diagnosis", "created_by_id", "created_at")
    search_fields = ("id", "diagnosis", "visit__visit_number")
    readonly_fields = ("visit", "created_by_id", "created_at", "updated_at")
    ordering = ("-created_at",)
