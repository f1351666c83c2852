# hd_core/pharmacy/api/serializers.py
from __future__ import annotations

from rest_framework import serializers

from hd_core.pharmacy.models import Prescription


class PrescriptionCreateSerializer(serializers.Serializer):
    visit_id = serializers.UUIDField()
    drug_id = serializers.UUIDField(required=False, allow_null=True)
    medication_name = serializers.CharField(max_length=255, required=False, allow_blank=True, default="")
    dosage = serializers.CharField(max_length=255, required=False, allow_blank=True, default="")
    quantity = serializers.IntegerField(min_value=1)
    instructions = serializers.CharField(required=False, allow_blank=True, default="")

    def validate(self, attrs):
        if not attrs.get("drug_id") and not (attrs.get("medication_name") or "").strip():
            raise serializers.ValidationError({"medication_name": "Provide drug_id or medication_name."})
        return attrs


class SetLineSerializer(serializers.Serializer):
    drug_id = serializers.UUIDField()
    quantity = serializers.IntegerField(required=False, allow_null=True, min_value=0)
    dosage = serializers.CharField(max_length=255, required=False, allow_blank=True, default="")
    instructions = serializers.CharField(required=False, allow_blank=True, default="")


class PrescriptionsFromSetSerializer(serializers.Serializer):
    visit_id = serializers.UUIDField()
    set_id = serializers.UUIDField()
    prescriptions = SetLineSerializer(many=True)


class PrescriptionUpdateSerializer(serializers.Serializer):
    medication_name = serializers.CharField(max_length=255, required=False)
    dosage = serializers.CharField(max_length=255, required=False, allow_blank=True)
    quantity = serializers.IntegerField(required=False, min_value=1)
    instructions = serializers.CharField(required=False, allow_blank=True)


class PrescriptionSerializer(serializers.ModelSerializer):
    visit_id = serializers.UUIDField(read_only=True)
    drug_id = serializers.UUIDField(read_only=True)

    class Meta:
        model = Prescription
        fields = [
            "id",
            "visit_id",
            "drug_id",
            "medication_name",
            "dosage",
            "quantity",
            "instructions",
            "created_by_id",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields
