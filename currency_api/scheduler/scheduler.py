import logging
import time

import aiocron

from currency_api.services.rates import CurrencyServiceError, RateSnapshot
from currency_api.services.rates_service import RatesService

logger = logging.getLogger(__name__)


async def refresh_job(service: RatesService) -> RateSnapshot | None:
    """
    Принудительно обновляет курсы в кэше.

    Ошибки не пробрасываются: следующий запуск по расписанию попробует снова.

    :return: Снимок после обновления (может быть устаревшим) или None, если данных нет
    """
    logger.info("[CRON] Refreshing exchange rates")
    started = time.perf_counter()
    try:
        snapshot = await service.refresh()
    except CurrencyServiceError:
        logger.exception("[CRON] Cron job failed, will retry on next scheduled execution")
        return None

    elapsed_ms = int((time.perf_counter() - started) * 1000)
    if snapshot.is_stale:
        logger.warning(f"[CRON] Refresh failed, serving stale rates: {snapshot.error}")
    else:
        logger.info(f"[CRON] Successfully refreshed {snapshot.total_currencies} currencies in {elapsed_ms}ms")
    return snapshot


def schedule_rates_refresh(*, service: RatesService, cron: str) -> aiocron.Cron:
    """
    Планирует фоновое обновление курсов по расписанию.

    :param service: Сервис курсов, чей кэш обновляется
    :param cron: Cron-выражение (пример: '* * * * *' — каждую минуту)
    """
    @aiocron.crontab(cron)
    async def rates_refresh_task():
        await refresh_job(service)

    logger.info(f"[CRON] Rates refresh scheduled: '{cron}'")
    return rates_refresh_task
