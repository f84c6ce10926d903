"""
Tests for datetime and identifier utilities
"""
import re
from datetime import datetime, timezone

from app.utils.datetime_utils import from_local_input, isoformat_local, parse_iso, to_utc
from app.utils.identifiers import generate_customer_id, generate_slug, to_base36


def test_to_base36():
    assert to_base36(0) == "0"
    assert to_base36(35) == "z"
    assert to_base36(36) == "10"


def test_generate_slug_format():
    now = datetime(2026, 5, 1, 1, 0, 0, tzinfo=timezone.utc)
    slug = generate_slug(now)
    prefix, stamp = slug.split("-")
    assert re.fullmatch(r"[a-z0-9]{8}", prefix)
    assert int(stamp, 36) == int(now.timestamp() * 1000)


def test_generate_customer_id():
    customer_id = generate_customer_id()
    assert re.fullmatch(r"[A-Z0-9]{8}", customer_id)


def test_local_rendering_round_trip():
    instant = datetime(2026, 5, 1, 1, 0, 0)
    rendered = isoformat_local(instant)
    assert rendered == "2026-05-01T10:00:00+09:00"
    assert parse_iso(rendered) == instant
    assert parse_iso("2026-05-01T01:00:00Z") == instant
    assert parse_iso(None) is None


def test_local_input_conversion():
    assert from_local_input(datetime(2026, 5, 1, 10, 0, 0)) == datetime(2026, 5, 1, 1, 0, 0)
    assert to_utc(datetime(2026, 5, 1, 10, 0, 0, tzinfo=timezone.utc)) == datetime(2026, 5, 1, 10, 0, 0)
