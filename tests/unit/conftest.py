"""Unit test fixtures."""

from __future__ import annotations

import pytest

from preeval.messaging.topics import Topics
from tests.fakes import MemoryMessageBus, affiliate_record


@pytest.fixture
def bus() -> MemoryMessageBus:
    return MemoryMessageBus()


@pytest.fixture
def directory(bus):
    """Affiliate directory keyed by id; tests add records to the returned dict."""
    records = {12345: affiliate_record()}
    bus.set_handler(
        Topics.AFFILIATE_FIND_ONE,
        lambda payload: records.get(payload["affiliateId"]),
    )
    return records
