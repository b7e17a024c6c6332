from django.apps import AppConfig


class PgnTrainerConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "pgntrainer"
    verbose_name = "PGN Trainer"
