"""Django app configuration for the Cart app."""

from django.apps import AppConfig


class CartConfig(AppConfig):
    """AppConfig for the shopping cart."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "cart"
