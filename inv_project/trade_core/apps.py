from django.apps import AppConfig


class TradeCoreConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "trade_core"
    verbose_name = "Trade core"

    # ensure receivers are registered
    def ready(self):
        import trade_core.signals  # noqa: F401
