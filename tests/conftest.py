import asyncio
from datetime import datetime, timedelta, timezone

import pytest

from currency_api.services.rates import RateSnapshot, RateStore, UpstreamUnreachable

SAMPLE_RATES = {"USD": 1.0, "EUR": 0.9, "JPY": 150.0, "GBP": 0.8}

SAMPLE_PAYLOAD = {
    "result": "success",
    "base_code": "USD",
    "time_last_update_utc": "Mon, 19 Oct 2026 00:00:01 +0000",
    "time_next_update_utc": "Tue, 20 Oct 2026 00:00:01 +0000",
    "conversion_rates": SAMPLE_RATES,
}


class FakeClock:
    def __init__(self, start: datetime | None = None):
        self.now = start or datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


class FakeProvider:
    """Провайдер в памяти: считает вызовы, умеет падать и ждать сигнала."""

    def __init__(self, clock: FakeClock, rates: dict | None = None):
        self.clock = clock
        self.rates = dict(rates or SAMPLE_RATES)
        self.calls = 0
        self.error: Exception | None = None
        self.gate: asyncio.Event | None = None

    async def fetch_latest(self, base: str = "USD") -> RateSnapshot:
        self.calls += 1
        if self.gate is not None:
            await self.gate.wait()
        if self.error is not None:
            raise self.error
        return RateSnapshot(
            base_currency=base,
            rates=self.rates,
            fetched_at=self.clock(),
            provider_last_update=SAMPLE_PAYLOAD["time_last_update_utc"],
            provider_next_update=SAMPLE_PAYLOAD["time_next_update_utc"],
        )

    def fail(self, error: Exception | None = None) -> None:
        self.error = error or UpstreamUnreachable("connection refused")

    def recover(self) -> None:
        self.error = None


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def provider(clock) -> FakeProvider:
    return FakeProvider(clock)


@pytest.fixture
def store(provider, clock) -> RateStore:
    return RateStore(
        provider=provider,
        refresh_interval=timedelta(seconds=60),
        base_currency="USD",
        clock=clock,
    )


@pytest.fixture
def snapshot(clock) -> RateSnapshot:
    return RateSnapshot(base_currency="USD", rates=SAMPLE_RATES, fetched_at=clock())
