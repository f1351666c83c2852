# hd_core/notifications/models.py
from __future__ import annotations

from django.db import models
from django.utils import timezone

from hd_core.common.models import UUIDModel


class NotificationKind(models.TextChoices):
    NEW_VISIT = "new_visit", "New visit"
    ITEMS_SELECTED = "items_selected", "Items selected"
    LAST_DEPARTMENT = "last_department", "Last department"
    VISIT_COMPLETED = "visit_completed", "Visit completed"
    VISIT_CLOSED = "visit_closed", "Visit closed"
    REMINDER = "reminder", "Reminder"


class Notification(UUIDModel):
    """
    In-app notification addressed to a role (everyone in that group sees it).
    Link to the visit is loose so notifications never block visit writes.
    """
    recipient_role = models.CharField(max_length=32, db_index=True)
    visit_id = models.UUIDField(null=True, blank=True, db_index=True)
    visit_number = models.CharField(max_length=32, blank=True, default="")

    kind = models.CharField(max_length=32, choices=NotificationKind.choices, db_index=True)
    title = models.CharField(max_length=255)
    message = models.TextField(blank=True, default="")

    created_by_id = models.IntegerField(null=True, blank=True)

    is_read = models.BooleanField(default=False, db_index=True)
    read_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        db_table = "notifications_notification"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["recipient_role", "is_read", "created_at"]),
        ]

    def __str__(self) -> str:
        return f"{self.recipient_role}: {self.title}"

    def mark_read(self) -> None:
        if not self.is_read:
            self.is_read = True
            self.read_at = timezone.now()
