# hd_core/doctor/api/serializers.py
from __future__ import annotations

from rest_framework import serializers

from hd_core.doctor.models import Diagnosis


class DiagnosisCreateSerializer(serializers.Serializer):
    visit_id = serializers.UUIDField()
    diagnosis = serializers.CharField()
    notes = serializers.CharField(required=False, allow_blank=True, default="")


class DiagnosisUpdateSerializer(serializers.Serializer):
    diagnosis = serializers.CharField(required=False)
    notes = serializers.CharField(required=False, allow_blank=True)


class DiagnosisSerializer(serializers.ModelSerializer):
    visit_id = serializers.UUIDField(read_only=True)

    class Meta:
        model = Diagnosis
        fields = ["id", "visit_id", "diagnosis", "notes", "created_by_id", "created_at", "updated_at"]
        read_only_fields = fields
