import asyncio
import logging

from currency_api.config import settings
from currency_api.scheduler.scheduler import refresh_job, schedule_rates_refresh
from currency_api.services.rates_service import RatesService
from currency_api.utils.alerts import setup_logging

logger = logging.getLogger(__name__)


def build_service() -> RatesService:
    """Собирает единственный на процесс `RatesService` из настроек."""
    return RatesService()


async def main() -> None:
    """Главная точка входа сервиса курсов.

    Последовательно выполняет:
      1. Настройку логирования и алертов (`setup_logging`).
      2. Создание `RatesService` с общим кэшем курсов.
      3. Первичную загрузку курсов (`refresh_job`).
      4. Планирование фонового обновления (`schedule_rates_refresh`).
      5. Ожидание до остановки процесса.
    """
    setup_logging()
    if not settings.EXCHANGE_API_KEY:
        logger.warning("[RATES] EXCHANGE_API_KEY is not set, upstream requests will fail")

    service = build_service()
    await refresh_job(service)
    schedule_rates_refresh(service=service, cron=settings.REFRESH_CRON)

    await asyncio.Event().wait()

if __name__ == "__main__":
    asyncio.run(main())
