from django.apps import AppConfig


class LogisticsConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'logistics'
    verbose_name = 'Logistique'

    def ready(self):
        # Register signals for real-time broadcasting
        import logistics.signals  # noqa: F401
