# hd_core/lab/api/serializers.py
from __future__ import annotations

from rest_framework import serializers

from hd_core.lab.models import LabResult


class LabResultCreateSerializer(serializers.Serializer):
    visit_id = serializers.UUIDField()
    test_id = serializers.UUIDField(required=False, allow_null=True)
    test_name = serializers.CharField(max_length=255, required=False, allow_blank=True, default="")
    result = serializers.CharField(max_length=255, required=False, allow_blank=True, default="")
    unit = serializers.CharField(max_length=64, required=False, allow_blank=True, default="")
    normal_range = serializers.CharField(max_length=255, required=False, allow_blank=True, default="")
    notes = serializers.CharField(required=False, allow_blank=True, default="")

    def validate(self, attrs):
        if not attrs.get("test_id") and not (attrs.get("test_name") or "").strip():
            raise serializers.ValidationError({"test_name": "Provide test_id or test_name."})
        return attrs


class PanelResultValueSerializer(serializers.Serializer):
    test_id = serializers.UUIDField()
    result = serializers.CharField(max_length=255, required=False, allow_blank=True, default="")
    notes = serializers.CharField(required=False, allow_blank=True, default="")


class LabResultsFromPanelSerializer(serializers.Serializer):
    visit_id = serializers.UUIDField()
    panel_id = serializers.UUIDField()
    results = PanelResultValueSerializer(many=True, required=False)


class LabResultUpdateSerializer(serializers.Serializer):
    test_name = serializers.CharField(max_length=255, required=False)
    result = serializers.CharField(max_length=255, required=False, allow_blank=True)
    unit = serializers.CharField(max_length=64, required=False, allow_blank=True)
    normal_range = serializers.CharField(max_length=255, required=False, allow_blank=True)
    notes = serializers.CharField(required=False, allow_blank=True)


class LabResultSerializer(serializers.ModelSerializer):
    visit_id = serializers.UUIDField(read_only=True)
    test_id = serializers.UUIDField(read_only=True)

    class Meta:
        model = LabResult
        fields = [
            "id",
            "visit_id",
            "test_id",
            "test_name",
            "result",
            "unit",
            "normal_range",
            "notes",
            "created_by_id",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields
