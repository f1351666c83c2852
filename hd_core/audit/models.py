# hd_core/audit/models.py
import uuid

from django.core.exceptions import ValidationError
from django.db import models


class AuditEvent(models.Model):
    """
    Immutable audit record: who did what to which entity.
    Visit status transitions additionally live in VisitStatusHistory.
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    event_code = models.CharField(max_length=128, db_index=True)  # e.g. "visit.force_closed"
    entity_type = models.CharField(max_length=128, db_index=True)  # e.g. "Visit"
    entity_id = models.UUIDField(db_index=True)

    actor_user_id = models.IntegerField(null=True, blank=True, db_index=True)

    occurred_at = models.DateTimeField(auto_now_add=True, db_index=True)
    metadata = models.JSONField(default=dict)

    class Meta:
        db_table = "audit_audit_event"
        indexes = [
            models.Index(fields=["entity_type", "entity_id"]),
            models.Index(fields=["event_code", "occurred_at"]),
        ]

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise ValidationError("AuditEvent is immutable and cannot be modified once created.")
        return super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ValidationError("AuditEvent is immutable and cannot be deleted.")
