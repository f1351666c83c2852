# hd_core/visits/apps.py
from django.apps import AppConfig


class VisitsConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "hd_core.visits"
