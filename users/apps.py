"""Django app configuration for the users app."""

from django.apps import AppConfig


class UsersConfig(AppConfig):
    """Buyer and staff accounts."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "users"
    verbose_name = "Accounts"
