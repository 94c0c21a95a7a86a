import asyncio
import logging
from dataclasses import replace
from datetime import datetime, timedelta
from typing import Callable

from currency_api.config import settings
from currency_api.services.rates.errors import NoDataAvailable, UpstreamError
from currency_api.services.rates.provider import ExchangeRateProvider, utcnow
from currency_api.services.rates.snapshot import RateSnapshot

logger = logging.getLogger(__name__)


class RateStore:
    """
    Кэш курсов в памяти процесса с TTL и откатом на устаревшие данные.

    Жизненный цикл: пусто -> свежий снимок <-> устаревший снимок; `clear()`
    возвращает хранилище в пустое состояние. TTL отсчитывается от последнего
    *успешного* запроса к провайдеру: после неудачи время не сдвигается,
    поэтому следующий вызов снова пойдёт к провайдеру.

    Параллельные обновления объединяются: пока запрос к провайдеру в пути,
    остальные вызовы ждут его результат, а не шлют свои.
    """

    def __init__(
        self,
        provider: ExchangeRateProvider | None = None,
        refresh_interval: timedelta | None = None,
        base_currency: str | None = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        self._provider = provider or ExchangeRateProvider()
        self._refresh_interval = refresh_interval or timedelta(seconds=settings.REFRESH_INTERVAL_SECONDS)
        self._base_currency = (base_currency or settings.BASE_CURRENCY).upper()
        self._clock = clock

        self._snapshot: RateSnapshot | None = None
        self._last_fetch_time: datetime | None = None
        self._inflight: asyncio.Future | None = None
        # растёт при clear(): запрос, начатый до очистки, не должен наполнить кэш
        self._generation = 0

    @property
    def refresh_interval(self) -> timedelta:
        return self._refresh_interval

    @property
    def base_currency(self) -> str:
        return self._base_currency

    @property
    def snapshot(self) -> RateSnapshot | None:
        return self._snapshot

    @property
    def last_fetch_time(self) -> datetime | None:
        return self._last_fetch_time

    def should_refresh(self) -> bool:
        if self._snapshot is None or self._last_fetch_time is None:
            return True
        return self._clock() - self._last_fetch_time >= self._refresh_interval

    def cache_age(self) -> timedelta | None:
        """Время с последнего успешного запроса к провайдеру."""
        if self._last_fetch_time is None:
            return None
        return self._clock() - self._last_fetch_time

    def next_refresh_in(self) -> timedelta | None:
        """Сколько осталось до истечения TTL; ноль, если обновление уже нужно."""
        age = self.cache_age()
        if age is None:
            return None
        return max(self._refresh_interval - age, timedelta(0))

    def clear(self) -> None:
        self._snapshot = None
        self._last_fetch_time = None
        self._inflight = None
        self._generation += 1
        logger.info("[RATES] Cache cleared")

    async def get_rates(self, force_refresh: bool = False) -> RateSnapshot:
        """
        Возвращает текущий снимок курсов, при необходимости обновив его.

        Args:
            force_refresh: Обновить у провайдера даже при свежем кэше.

        Returns:
            Свежий снимок, либо предыдущий снимок с пометкой `stale_cache`
            и сохранённой ошибкой, если провайдер не ответил.

        Raises:
            NoDataAvailable: провайдер не ответил, а кэш пуст.
        """
        if not (force_refresh or self.should_refresh()):
            return self._snapshot.as_fresh()

        try:
            return await self._refresh()
        except UpstreamError as e:
            previous = self._snapshot
            if previous is None:
                logger.exception("[RATES] API error, no cached rates available")
                raise NoDataAvailable(e) from e
            logger.warning(f"[RATES] API error, using cached rates: {e}")
            return previous.as_stale(e)

    async def _refresh(self) -> RateSnapshot:
        task = self._inflight
        if task is None:
            task = asyncio.ensure_future(self._fetch_and_store(self._generation))
            self._inflight = task
            task.add_done_callback(self._release_inflight)
        return await asyncio.shield(task)

    def _release_inflight(self, task: asyncio.Future) -> None:
        if self._inflight is task:
            self._inflight = None

    async def _fetch_and_store(self, generation: int) -> RateSnapshot:
        snapshot = await self._provider.fetch_latest(self._base_currency)
        if generation != self._generation:
            # кэш очистили, пока запрос был в пути
            return snapshot.as_fresh()

        current = self._snapshot
        if current is not None and snapshot.fetched_at < current.fetched_at:
            snapshot = replace(snapshot, fetched_at=current.fetched_at)
        self._snapshot = snapshot.as_fresh()
        self._last_fetch_time = self._clock()
        logger.info(f"[RATES] Successfully cached {snapshot.total_currencies} currencies")
        return self._snapshot
