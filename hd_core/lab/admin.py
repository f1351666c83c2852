# hd_core/lab/admin.py
from __future__ import annotations

from django.contrib import admin

from hd_core.lab.models import LabResult


@admin.register(LabResult)
class LabResultAdmin(admin.ModelAdmin):
    list_display = ("id", "visit", "test_name", "result", "unit", "created_by_id", "created_at")
    search_fields = ("id", "test_name", "visit__visit_number")
    readonly_fields = ("visit", "test", "created_by_id", "created_at", "updated_at")
    ordering = ("-created_at",)
