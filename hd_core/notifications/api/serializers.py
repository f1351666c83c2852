# hd_core/notifications/api/serializers.py
from __future__ import annotations

from rest_framework import serializers

from hd_core.notifications.models import Notification


class NotificationSerializer(serializers.ModelSerializer):
    class Meta:
        model = Notification
        fields = [
            "id",
            "recipient_role",
            "visit_id",
            "visit_number",
            "kind",
            "title",
            "message",
            "created_by_id",
            "is_read",
            "read_at",
            "created_at",
        ]
        read_only_fields = fields
