# hd_core/notifications/selectors.py
from __future__ import annotations

from typing import Iterable

from django.db.models import QuerySet

from hd_core.notifications.models import Notification


def notifications_for_roles(*, roles: Iterable[str], unread_only: bool = False) -> QuerySet[Notification]:
    qs = Notification.objects.filter(recipient_role__in=list(roles))
    if unread_only:
        qs = qs.filter(is_read=False)
    return qs.order_by("-created_at")
