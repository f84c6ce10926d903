"""
Identifier generation: schedule slugs and customer login ids
"""
import secrets
import string
from datetime import datetime, timezone

SLUG_ALPHABET = string.ascii_lowercase + string.digits
CUSTOMER_ID_ALPHABET = string.ascii_uppercase + string.digits
BASE36_DIGITS = string.digits + string.ascii_lowercase


def to_base36(value: int) -> str:
    """Encode a non-negative integer in base 36 (lowercase)"""
    if value < 0:
        raise ValueError("value must be non-negative")
    if value == 0:
        return "0"
    digits = []
    while value:
        value, rem = divmod(value, 36)
        digits.append(BASE36_DIGITS[rem])
    return "".join(reversed(digits))


def generate_slug(now: datetime = None) -> str:
    """
    Generate a routable schedule slug.

    Format: 8 random [a-z0-9] chars, '-', creation time in ms as base 36.
    """
    now = now or datetime.now(timezone.utc)
    prefix = ''.join(secrets.choice(SLUG_ALPHABET) for _ in range(8))
    return f"{prefix}-{to_base36(int(now.timestamp() * 1000))}"


def generate_customer_id(length: int = 8) -> str:
    """
    Generate a short alphanumeric customer login id
    """
    return ''.join(secrets.choice(CUSTOMER_ID_ALPHABET) for _ in range(length))
