from django.apps import AppConfig


class Numbers4Config(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'apps.numbers4'
    label = 'numbers4'
