"""
apps.py - App configuration with signal registration
"""
from django.apps import AppConfig


class ArchalleyConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name               = "archalley"
    verbose_name       = "Archalley community & competitions"

    def ready(self):
        import archalley.signals  # noqa: F401  ← registers all signals
