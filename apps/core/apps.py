from django.apps import AppConfig


class CoreConfig(AppConfig):
    name = 'apps.core'
    default_auto_field = 'django.db.models.BigAutoField'

    def ready(self):
        # Registers the X-API-Key security scheme with drf-spectacular
        from apps.core import openapi  # noqa: F401
