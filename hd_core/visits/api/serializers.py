# hd_core/visits/api/serializers.py
from __future__ import annotations

from rest_framework import serializers

from hd_core.doctor.api.serializers import DiagnosisSerializer
from hd_core.lab.api.serializers import LabResultSerializer
from hd_core.pharmacy.api.serializers import PrescriptionSerializer
from hd_core.visits.models import Department, Visit, VisitStatusHistory, VisitVariant


class VisitCreateSerializer(serializers.Serializer):
    patient_id = serializers.UUIDField()
    variant = serializers.ChoiceField(choices=VisitVariant.choices, required=False, default=VisitVariant.STANDARD)
    note = serializers.CharField(required=False, allow_blank=True, default="")


class CompleteDepartmentSerializer(serializers.Serializer):
    department = serializers.ChoiceField(choices=Department.choices)
    note = serializers.CharField(required=False, allow_blank=True, default="")


class SelectItemsSerializer(serializers.Serializer):
    lab_test_ids = serializers.ListField(child=serializers.UUIDField(), required=False, default=list)
    drug_ids = serializers.ListField(child=serializers.UUIDField(), required=False, default=list)

    def validate(self, attrs):
        if not attrs.get("lab_test_ids") and not attrs.get("drug_ids"):
            raise serializers.ValidationError("Select at least one lab test or drug.")
        return attrs


class ForceCloseSerializer(serializers.Serializer):
    reason = serializers.CharField(required=False, allow_blank=True, default="")


class ReminderSerializer(serializers.Serializer):
    role = serializers.CharField()
    message = serializers.CharField(required=False, allow_blank=True, default="")


class VisitStatusHistorySerializer(serializers.ModelSerializer):
    class Meta:
        model = VisitStatusHistory
        fields = ["id", "status", "event", "note", "changed_by_id", "created_at"]
        read_only_fields = fields


class VisitSerializer(serializers.ModelSerializer):
    """
    Status and flags are read-only: they only change through workflow actions.
    """
    patient_id = serializers.UUIDField(read_only=True)
    patient_name = serializers.CharField(source="patient.full_name", read_only=True)
    outstanding_departments = serializers.ListField(child=serializers.CharField(), read_only=True)

    class Meta:
        model = Visit
        fields = [
            "id",
            "visit_number",
            "patient_id",
            "patient_name",
            "variant",
            "status",
            "lab_done",
            "pharmacy_done",
            "doctor_done",
            "outstanding_departments",
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
        ]
        read_only_fields = fields


class VisitDetailSerializer(VisitSerializer):
    lab_results = LabResultSerializer(many=True, read_only=True)
    prescriptions = PrescriptionSerializer(many=True, read_only=True)
    diagnoses = DiagnosisSerializer(many=True, read_only=True)
    history = VisitStatusHistorySerializer(many=True, read_only=True)

    class Meta(VisitSerializer.Meta):
        fields = VisitSerializer.Meta.fields + ["lab_results", "prescriptions", "diagnoses", "history"]
        read_only_fields = fields
