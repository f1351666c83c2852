# hd_core/lab/apps.py
from django.apps import AppConfig


class LabConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "hd_core.lab"
