# hd_core/catalog/api/serializers.py
from __future__ import annotations

from rest_framework import serializers

from hd_core.catalog.models import Drug, LabPanel, LabPanelItem, LabTest, PrescriptionSet, PrescriptionSetItem


class LabTestSerializer(serializers.ModelSerializer):
    normal_range = serializers.CharField(source="normal_range_display", read_only=True)

    class Meta:
        model = LabTest
        fields = [
            "id",
            "code",
            "name",
            "unit",
            "normal_range_min",
            "normal_range_max",
            "normal_range_text",
            "normal_range",
            "is_active",
        ]
        read_only_fields = fields


class LabPanelItemSerializer(serializers.ModelSerializer):
    test = LabTestSerializer(read_only=True)

    class Meta:
        model = LabPanelItem
        fields = ["position", "test"]


class LabPanelSerializer(serializers.ModelSerializer):
    items = LabPanelItemSerializer(many=True, read_only=True)

    class Meta:
        model = LabPanel
        fields = ["id", "name", "description", "is_active", "items"]
        read_only_fields = fields


class DrugSerializer(serializers.ModelSerializer):
    display_name = serializers.CharField(read_only=True)

    class Meta:
        model = Drug
        fields = ["id", "code", "name", "form", "strength", "manufacturer", "display_name", "is_active"]
        read_only_fields = fields


class PrescriptionSetItemSerializer(serializers.ModelSerializer):
    drug = DrugSerializer(read_only=True)

    class Meta:
        model = PrescriptionSetItem
        fields = ["position", "default_dosage", "drug"]


class PrescriptionSetSerializer(serializers.ModelSerializer):
    items = PrescriptionSetItemSerializer(many=True, read_only=True)

    class Meta:
        model = PrescriptionSet
        fields = ["id", "name", "description", "is_active", "items"]
        read_only_fields = fields
