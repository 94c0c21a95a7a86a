"""
Сервис, через который обработчики запросов работают с курсами.

Держит единственный на процесс `RateStore` и реализует операции бывших
эндпоинтов: конвертация, пакетная конвертация, таблица курсов, список
валют, статус хранилища, принудительное обновление, очистка и здоровье данных.
Рендеринг ответа (JSON/XML), CORS и маршрутизация остаются за обработчиками.
"""
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Iterable, Mapping

from currency_api.config import settings
from currency_api.services.rates import (
    BulkLimitExceeded,
    BulkResult,
    Conversion,
    CurrencyServiceError,
    EmptyBatch,
    InvalidAmount,
    RateSnapshot,
    RateStore,
    UnsupportedBaseCurrency,
    convert,
    convert_bulk,
)
from currency_api.utils.formatting import parse_amount, parse_amount_list

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CurrencyInfo:
    code: str
    rate_from_base: float | None = None
    rate_to_base: float | None = None


@dataclass(frozen=True)
class StorageStatus:
    has_data: bool
    storage_status: str
    should_refresh: bool
    refresh_interval: timedelta
    total_currencies: int = 0
    base_currency: str | None = None
    last_updated: str | None = None
    next_update: str | None = None
    cached_at: datetime | None = None
    cache_status: str | None = None
    last_fetch: datetime | None = None
    cache_age: timedelta | None = None
    next_refresh_in: timedelta | None = None
    error: str | None = None


@dataclass(frozen=True)
class DataHealth:
    data_available: bool
    total_currencies: int = 0
    base_currency: str | None = None
    last_updated: str | None = None
    next_update: str | None = None
    cache_age: timedelta | None = None
    cache_status: str | None = None
    error: str | None = None

    @property
    def status(self) -> str:
        return "healthy" if self.data_available else "unhealthy"


class RatesService:
    """Фасад над `RateStore` для обработчиков запросов."""

    def __init__(self, store: RateStore | None = None, bulk_max_items: int | None = None):
        self.store = store or RateStore()
        self.bulk_max_items = bulk_max_items or settings.BULK_MAX_ITEMS

    async def convert(self, from_currency: str, to_currency: str, amount: Any) -> tuple[Conversion, RateSnapshot]:
        """
        Конвертирует одну сумму.

        Сумма проверяется до обращения к кэшу, чтобы заведомо
        неверный запрос не запускал обновление курсов.

        Returns:
            Результат конвертации и снимок, на котором он посчитан.
        """
        value = parse_amount(amount)
        if value is None:
            raise InvalidAmount(amount)
        snapshot = await self.store.get_rates()
        return convert(from_currency, to_currency, value, snapshot), snapshot

    async def convert_bulk(self, items: Iterable[Mapping[str, Any]]) -> BulkResult:
        """
        Пакетная конвертация.

        Снимок курсов берётся из хранилища ровно один раз на весь пакет,
        поэтому все элементы считаются по одним и тем же курсам.

        Raises:
            EmptyBatch: пакет пуст.
            BulkLimitExceeded: элементов больше, чем `bulk_max_items`.
        """
        items = [self._normalize_item(item) for item in items]
        if not items:
            raise EmptyBatch()
        if len(items) > self.bulk_max_items:
            raise BulkLimitExceeded(len(items), self.bulk_max_items)

        snapshot = await self.store.get_rates()
        result = convert_bulk(items, snapshot)
        logger.info(f"[RATES] Bulk conversion: {result.successful}/{result.total} succeeded")
        return result

    @staticmethod
    def bulk_items_from_query(from_currency: str | None, to_currency: str | None, amounts: str | None) -> list[dict]:
        # GET-вариант: одна пара валют, много сумм
        if not (from_currency and to_currency and amounts):
            return []
        return [
            {"from": from_currency, "to": to_currency, "amount": amount}
            for amount in parse_amount_list(amounts)
        ]

    async def rates(self, base: str | None = None) -> RateSnapshot:
        snapshot = await self.store.get_rates()
        if base is not None and base.strip().upper() != snapshot.base_currency:
            raise UnsupportedBaseCurrency(base, snapshot.base_currency)
        return snapshot

    async def currencies(self, search: str = "", sort: str = "code", include_rates: bool = False) -> tuple[list[CurrencyInfo], RateSnapshot]:
        snapshot = await self.store.get_rates()
        term = (search or "").strip().lower()

        result: list[CurrencyInfo] = []
        for code, rate in snapshot.rates.items():
            if term and term not in code.lower():
                continue
            if include_rates:
                result.append(CurrencyInfo(code=code, rate_from_base=rate, rate_to_base=1 / rate))
            else:
                result.append(CurrencyInfo(code=code))

        # без таблицы названий сортировать можно только по коду
        if sort not in ("code", "name"):
            logger.debug(f"[RATES] Unknown sort key '{sort}', sorting by code")
        result.sort(key=lambda c: c.code)
        return result, snapshot

    async def status(self) -> StorageStatus:
        try:
            snapshot = await self.store.get_rates()
        except CurrencyServiceError as e:
            return StorageStatus(
                has_data=False,
                storage_status="error",
                should_refresh=True,
                refresh_interval=self.store.refresh_interval,
                error=str(e),
            )
        return StorageStatus(
            has_data=True,
            storage_status="active",
            should_refresh=self.store.should_refresh(),
            refresh_interval=self.store.refresh_interval,
            total_currencies=snapshot.total_currencies,
            base_currency=snapshot.base_currency,
            last_updated=snapshot.provider_last_update,
            next_update=snapshot.provider_next_update,
            cached_at=snapshot.fetched_at,
            cache_status=snapshot.freshness.value,
            last_fetch=self.store.last_fetch_time,
            cache_age=self.store.cache_age(),
            next_refresh_in=self.store.next_refresh_in(),
            error=str(snapshot.error) if snapshot.error else None,
        )

    async def refresh(self) -> RateSnapshot:
        return await self.store.get_rates(force_refresh=True)

    def clear(self) -> None:
        self.store.clear()

    async def health(self, now: datetime | None = None) -> DataHealth:
        try:
            snapshot = await self.store.get_rates()
        except CurrencyServiceError as e:
            return DataHealth(data_available=False, error=str(e))

        now = now or datetime.now(snapshot.fetched_at.tzinfo)
        return DataHealth(
            data_available=True,
            total_currencies=snapshot.total_currencies,
            base_currency=snapshot.base_currency,
            last_updated=snapshot.provider_last_update,
            next_update=snapshot.provider_next_update,
            cache_age=now - snapshot.fetched_at,
            cache_status=snapshot.freshness.value,
            error=str(snapshot.error) if snapshot.error else None,
        )

    @staticmethod
    def error_status(exc: Exception) -> int:
        """HTTP-код для ошибки сервиса; всё неизвестное считается 500."""
        if isinstance(exc, CurrencyServiceError):
            return exc.http_status
        return 500

    @staticmethod
    def _normalize_item(item: Any) -> dict:
        if not isinstance(item, Mapping):
            item = {}
        amount = item.get("amount")
        parsed = parse_amount(amount)
        return {
            "from": item.get("from"),
            "to": item.get("to"),
            "amount": amount if parsed is None else parsed,
        }
