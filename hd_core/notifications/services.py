# hd_core/notifications/services.py
from __future__ import annotations

import logging
from typing import Iterable

from django.db import DatabaseError, transaction
from django.utils import timezone

from hd_core.notifications.models import Notification

logger = logging.getLogger(__name__)


class NotificationService:
    @staticmethod
    def notify_roles(
        *,
        roles: Iterable[str],
        kind: str,
        title: str,
        message: str = "",
        visit_id=None,
        visit_number: str = "",
        created_by_id: int | None = None,
    ) -> list[Notification]:
        """
        Fire-and-forget: a failed insert is logged and never propagates to the
        workflow call that triggered it.
        """
        roles = list(dict.fromkeys(roles))
        if not roles:
            return []

        try:
            with transaction.atomic():
                return Notification.objects.bulk_create(
                    [
                        Notification(
                            recipient_role=role,
                            visit_id=visit_id,
                            visit_number=visit_number or "",
                            kind=kind,
                            title=title,
                            message=message or "",
                            created_by_id=created_by_id,
                        )
                        for role in roles
                    ]
                )
        except DatabaseError:
            logger.exception("Failed to store %s notification for visit %s (roles=%s)", kind, visit_number, roles)
            return []

    @staticmethod
    def mark_read(*, notification: Notification) -> Notification:
        notification.mark_read()
        notification.save(update_fields=["is_read", "read_at", "updated_at"])
        return notification

    @staticmethod
    def mark_all_read(*, roles: Iterable[str]) -> int:
        return Notification.objects.filter(recipient_role__in=list(roles), is_read=False).update(
            is_read=True,
            read_at=timezone.now(),
            updated_at=timezone.now(),
        )
