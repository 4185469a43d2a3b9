from django.apps import AppConfig


class WingoConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "wingo"
