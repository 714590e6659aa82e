"""Business number generation for orders and payments."""

from datetime import datetime
from typing import Optional

from django.utils import timezone
from django.utils.crypto import get_random_string

SUFFIX_LENGTH = 6


def generate_number(prefix: str, *, now: Optional[datetime] = None) -> str:
    """Return ``<prefix><YYYYMMDDHHMMSSffffff><6 random alphanumerics>``.

    Time-ordered, and the random suffix makes collisions within the same
    microsecond practically impossible. Uniqueness is still enforced by the
    column's unique index.
    """
    now = now or timezone.localtime()
    return f"{prefix}{now.strftime('%Y%m%d%H%M%S%f')}{get_random_string(SUFFIX_LENGTH)}"
