from currency_api.services.rates import (
    Freshness,
    NoDataAvailable,
    RateSnapshot,
    RateStore,
    UpstreamHttpError,
    UpstreamUnreachable,
)
import asyncio
from datetime import timedelta

import pytest


def test_first_call_fetches_and_returns_fresh(store, provider, clock):
    snapshot = asyncio.run(store.get_rates())

    assert provider.calls == 1
    assert snapshot.freshness is Freshness.FRESH
    assert snapshot.error is None
    assert snapshot.fetched_at == clock()
    assert snapshot.total_currencies == 4


def test_two_calls_within_ttl_fetch_once(store, provider, clock):
    first = asyncio.run(store.get_rates())
    clock.advance(59)
    second = asyncio.run(store.get_rates())

    assert provider.calls == 1
    assert second.fetched_at == first.fetched_at


def test_call_after_ttl_fetches_again(store, provider, clock):
    first = asyncio.run(store.get_rates())
    clock.advance(60)
    second = asyncio.run(store.get_rates())

    assert provider.calls == 2
    assert second.fetched_at > first.fetched_at


def test_force_refresh_within_ttl(store, provider, clock):
    asyncio.run(store.get_rates())
    clock.advance(5)
    asyncio.run(store.get_rates(force_refresh=True))

    assert provider.calls == 2


def test_failure_with_prior_snapshot_returns_stale(store, provider, clock):
    fresh = asyncio.run(store.get_rates())
    clock.advance(61)
    error = UpstreamHttpError(503)
    provider.fail(error)

    stale = asyncio.run(store.get_rates())

    assert stale.freshness is Freshness.STALE
    assert stale.error is error
    assert dict(stale.rates) == dict(fresh.rates)
    assert stale.fetched_at == fresh.fetched_at


def test_failure_does_not_advance_last_fetch_time(store, provider, clock):
    asyncio.run(store.get_rates())
    fetched_at = store.last_fetch_time
    clock.advance(61)
    provider.fail()

    asyncio.run(store.get_rates())
    asyncio.run(store.get_rates())

    # пока провайдер недоступен, каждый вызов идёт к нему снова
    assert provider.calls == 3
    assert store.last_fetch_time == fetched_at
    assert store.should_refresh() is True


def test_recovery_after_stale_returns_fresh(store, provider, clock):
    asyncio.run(store.get_rates())
    clock.advance(61)
    provider.fail()
    assert asyncio.run(store.get_rates()).is_stale

    provider.recover()
    snapshot = asyncio.run(store.get_rates())

    assert snapshot.freshness is Freshness.FRESH
    assert snapshot.error is None
    assert store.should_refresh() is False


def test_failure_without_snapshot_raises_no_data(store, provider):
    error = UpstreamUnreachable("dns failure")
    provider.fail(error)

    with pytest.raises(NoDataAvailable) as exc_info:
        asyncio.run(store.get_rates())

    assert exc_info.value.__cause__ is error
    assert store.snapshot is None


def test_should_refresh_has_no_side_effects(store, provider, clock):
    assert store.should_refresh() is True
    assert provider.calls == 0

    asyncio.run(store.get_rates())
    assert store.should_refresh() is False
    clock.advance(60)
    assert store.should_refresh() is True
    assert provider.calls == 1


def test_clear_resets_to_uninitialized(store, provider, clock):
    asyncio.run(store.get_rates())
    store.clear()
    store.clear()

    assert store.snapshot is None
    assert store.last_fetch_time is None
    assert store.should_refresh() is True

    asyncio.run(store.get_rates())
    assert provider.calls == 2


def test_clear_then_failure_raises_no_data(store, provider):
    asyncio.run(store.get_rates())
    store.clear()
    provider.fail()

    with pytest.raises(NoDataAvailable):
        asyncio.run(store.get_rates())


def test_concurrent_refreshes_share_one_fetch(store, provider):
    async def scenario():
        provider.gate = asyncio.Event()
        tasks = [asyncio.ensure_future(store.get_rates()) for _ in range(5)]
        await asyncio.sleep(0)
        provider.gate.set()
        return await asyncio.gather(*tasks)

    results = asyncio.run(scenario())

    assert provider.calls == 1
    assert len({r.fetched_at for r in results}) == 1


def test_clear_during_inflight_fetch_keeps_store_empty(store, provider):
    async def scenario():
        provider.gate = asyncio.Event()
        task = asyncio.ensure_future(store.get_rates())
        await asyncio.sleep(0)
        store.clear()
        provider.gate.set()
        return await task

    snapshot = asyncio.run(scenario())

    assert snapshot.total_currencies == 4
    assert store.snapshot is None
    assert store.should_refresh() is True


def test_fetched_at_never_decreases(clock):
    class BackwardsProvider:
        def __init__(self):
            self.times = [clock(), clock() - timedelta(seconds=30)]

        async def fetch_latest(self, base="USD"):
            return RateSnapshot(base_currency=base, rates={"USD": 1.0}, fetched_at=self.times.pop(0))

    store = RateStore(provider=BackwardsProvider(), refresh_interval=timedelta(seconds=60), clock=clock)
    first = asyncio.run(store.get_rates())
    second = asyncio.run(store.get_rates(force_refresh=True))

    assert second.fetched_at >= first.fetched_at
