# hd_core/notifications/apps.py
from django.apps import AppConfig


class NotificationsConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "hd_core.notifications"

    def ready(self):
        # register visit.* event handlers
        from hd_core.notifications import subscribers  # noqa: F401
