"""User model for authentication.

Extends Django's ``AbstractUser`` with a unique, normalized email and an
optional phone number. ``is_active`` doubles as the account status checked
before an order is placed.
"""

from django.contrib.auth.models import AbstractUser
from django.core.validators import RegexValidator
from django.db import models


class User(AbstractUser):
    """Custom user with unique email.

    Fields:
    - email: the primary email, unique at the database level (normalized).
    - phone: optional contact number in E.164 format.
    """

    email = models.EmailField(unique=True)
    phone = models.CharField(
        max_length=16,
        blank=True,
        validators=[RegexValidator(r"^\+?[1-9]\d{1,14}$", message="Use E.164 format (e.g., +8613800138000)")],
        help_text="Primary contact number for the account in E.164 format",
    )

    def save(self, *args, **kwargs):
        """Normalize email and phone so uniqueness checks are reliable."""
        if self.email:
            self.email = self.email.strip().lower()
        if self.phone:
            self.phone = self.phone.strip()
        super().save(*args, **kwargs)
