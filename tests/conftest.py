from datetime import datetime, timezone

import pytest
from apscheduler.schedulers.asyncio import AsyncIOScheduler

from config import Settings
from listings.token_record import TokenRecord


def make_record(**overrides) -> TokenRecord:
    fields = dict(
        id=101,
        name="Foo",
        symbol="FOO",
        price_usd=0.0123456789,
        volume_24h_usd=1234567.89,
        date_added=datetime(2024, 5, 1, 14, 5, 33, tzinfo=timezone.utc),
        platform_name=None,
        token_address=None,
    )
    fields.update(overrides)
    return TokenRecord(**fields)


class FakeFetcher:
    """Returns queued records one per call; repeats the last one when the queue runs dry."""

    def __init__(self, *records):
        self.records = list(records)
        self.calls = 0
        self._last = None

    async def fetch_latest(self):
        self.calls += 1
        if self.records:
            self._last = self.records.pop(0)
        return self._last


class FakeNotifier:
    def __init__(self, fail=False):
        self.fail = fail
        self.sent = []
        self.attempts = 0

    async def send(self, text):
        self.attempts += 1
        if self.fail:
            return False
        self.sent.append(text)
        return True


@pytest.fixture
def settings():
    return Settings(
        _env_file=None,
        cmc_api_key="test-key",
        telegram_bot_token="123:abc",
        telegram_channel_id=-1001234567890,
        poll_interval_ms=60_000,
        upgrade_delay_ms=240_000,
        promo_text="",
        state_db_path="",
    )


@pytest.fixture
async def scheduler():
    sched = AsyncIOScheduler(timezone="UTC")
    # paused: jobs are stored and can be inspected, but never fire
    sched.start(paused=True)
    yield sched
    sched.shutdown(wait=False)
