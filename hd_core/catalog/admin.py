# hd_core/catalog/admin.py
from __future__ import annotations

from django.contrib import admin

from hd_core.catalog.models import Drug, LabPanel, LabPanelItem, LabTest, PrescriptionSet, PrescriptionSetItem


@admin.register(LabTest)
class LabTestAdmin(admin.ModelAdmin):
    list_display = ("name", "code", "unit", "normal_range_min", "normal_range_max", "is_active")
    list_filter = ("is_active",)
    search_fields = ("name", "code")
    ordering = ("name",)


class LabPanelItemInline(admin.TabularInline):
    model = LabPanelItem
    extra = 1
    autocomplete_fields = ("test",)


@admin.register(LabPanel)
class LabPanelAdmin(admin.ModelAdmin):
    list_display = ("name", "is_active", "created_at")
    list_filter = ("is_active",)
    search_fields = ("name",)
    inlines = [LabPanelItemInline]


@admin.register(Drug)
class DrugAdmin(admin.ModelAdmin):
    list_display = ("name", "strength", "form", "code", "is_active")
    list_filter = ("is_active", "form")
    search_fields = ("name", "code")
    ordering = ("name",)


class PrescriptionSetItemInline(admin.TabularInline):
    model = PrescriptionSetItem
    extra = 1
    autocomplete_fields = ("drug",)


@admin.register(PrescriptionSet)
class PrescriptionSetAdmin(admin.ModelAdmin):
    list_display = ("name", "is_active", "created_at")
    list_filter = ("is_active",)
    search_fields = ("name",)
    inlines = [PrescriptionSetItemInline]
