"""Shared fixtures for core unit tests"""

from datetime import date, datetime, timezone

import pytest


SAMPLE_METADATA = {
    "title": "Service Agreement",
    "client": {"name": "Acme Corp", "type": "llc", "active": True},
    "amount": 1500.0,
    "parties": ["Acme Corp", "Provider Ltd"],
    "effective": date(2024, 1, 1),
}


@pytest.fixture(name="today")
def today_fixture():
    return date(2024, 1, 15)


@pytest.fixture(name="clock")
def clock_fixture():
    return lambda: datetime(2024, 1, 15, 12, 0, tzinfo=timezone.utc)


@pytest.fixture(name="metadata")
def metadata_fixture():
    return {k: (dict(v) if isinstance(v, dict) else v) for k, v in SAMPLE_METADATA.items()}
