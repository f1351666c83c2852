# hd_core/notifications/admin.py
from __future__ import annotations

from django.contrib import admin

from hd_core.notifications.models import Notification


@admin.register(Notification)
class NotificationAdmin(admin.ModelAdmin):
    list_display = ("recipient_role", "kind", "title", "visit_number", "is_read", "created_at")
    list_filter = ("recipient_role", "kind", "is_read")
    search_fields = ("title", "message", "visit_number")
    ordering = ("-created_at",)
