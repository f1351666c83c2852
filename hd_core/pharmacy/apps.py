# hd_core/pharmacy/apps.py
from django.apps import AppConfig


class PharmacyConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "hd_core.pharmacy"
