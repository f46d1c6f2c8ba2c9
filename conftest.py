from datetime import datetime, timedelta, timezone

import pytest


class FakeClock:
    """Settable clock handed to services as ``clock=``."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


@pytest.fixture
def clock():
    return FakeClock(datetime(2025, 6, 1, 9, 0, tzinfo=timezone.utc))
