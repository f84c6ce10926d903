"""
Utility Functions
"""
from .datetime_utils import now_utc, to_utc, to_local, isoformat_local, parse_iso
from .identifiers import generate_slug, generate_customer_id

__all__ = ["now_utc", "to_utc", "to_local", "isoformat_local", "parse_iso", "generate_slug", "generate_customer_id"]
