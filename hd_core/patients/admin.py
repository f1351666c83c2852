# hd_core/patients/admin.py
from django.contrib import admin

from hd_core.patients.models import Patient


@admin.register(Patient)
class PatientAdmin(admin.ModelAdmin):
    list_display = ("full_name", "national_id", "phone", "gender", "created_at")
    search_fields = ("full_name", "national_id", "phone")
    readonly_fields = ("created_at", "updated_at")
