# hd_core/visits/admin.py
from __future__ import annotations

from django.contrib import admin

from hd_core.visits.models import Visit, VisitStatusHistory


class VisitStatusHistoryInline(admin.TabularInline):
    model = VisitStatusHistory
    extra = 0
    can_delete = False
    fields = ("created_at", "event", "status", "note", "changed_by_id")
    readonly_fields = fields

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(Visit)
class VisitAdmin(admin.ModelAdmin):
    """
    Read-mostly: flags and status only change through the workflow service.
    """
    list_display = ("visit_number", "patient", "variant", "status", "lab_done", "pharmacy_done", "doctor_done", "created_at")
    list_filter = ("status", "variant")
    search_fields = ("visit_number", "patient__full_name", "patient__national_id")
    readonly_fields = (
        "visit_number",
        "patient",
        "variant",
        "status",
        "lab_done",
        "pharmacy_done",
        "doctor_done",
        "restricted_lab_test_ids",
        "restricted_drug_ids",
        "items_selected_at",
        "completed_at",
        "closed_at",
        "closed_reason",
        "created_by_id",
        "closed_by_id",
        "created_at",
        "updated_at",
    )
    ordering = ("-created_at",)
    inlines = [VisitStatusHistoryInline]

    def has_add_permission(self, request):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
