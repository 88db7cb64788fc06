from django.apps import AppConfig


class ExaminersConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'apps.examiners'
    verbose_name = 'Examiners'
