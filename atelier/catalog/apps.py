from django.apps import AppConfig


class CatalogConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'atelier.catalog'

    def ready(self):
        import atelier.catalog.signals  # noqa: F401  # Cache invalidation signals
