import logging
import math
from datetime import datetime, timezone
from typing import Callable

import httpx

from currency_api.config import settings
from currency_api.services.rates.errors import (
    UpstreamDataError,
    UpstreamHttpError,
    UpstreamUnreachable,
)
from currency_api.services.rates.snapshot import RateSnapshot

logger = logging.getLogger(__name__)

RATES_API_URL_TEMPLATE = "{base_url}/{api_key}/latest/{base}"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ExchangeRateProvider:
    """Клиент ExchangeRate-API v6.

    Один вызов `fetch_latest` — один HTTP-запрос без повторов. Любая
    проблема превращается в одну из ошибок `UpstreamError`, чтобы
    `RateStore` мог решить, отдавать ли устаревший кэш.
    """

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        self._api_key = settings.EXCHANGE_API_KEY if api_key is None else api_key
        self._base_url = (base_url or settings.EXCHANGE_API_BASE_URL).rstrip("/")
        self._timeout = timeout or settings.REQUEST_TIMEOUT_SECONDS
        self._transport = transport
        self._clock = clock

    def url_for(self, base: str) -> str:
        return RATES_API_URL_TEMPLATE.format(
            base_url=self._base_url, api_key=self._api_key, base=base.upper()
        )

    async def fetch_latest(self, base: str = "USD") -> RateSnapshot:
        url = self.url_for(base)
        try:
            async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
                resp = await client.get(url)
        except httpx.TimeoutException as e:
            raise UpstreamUnreachable(f"timed out after {self._timeout}s") from e
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            # в т.ч. битое сжатие тела и некорректный URL
            raise UpstreamUnreachable(str(e) or type(e).__name__) from e

        if not resp.is_success:
            raise UpstreamHttpError(resp.status_code)

        try:
            data = resp.json()
        except ValueError as e:
            raise UpstreamDataError("invalid JSON payload") from e
        if not isinstance(data, dict):
            raise UpstreamDataError("unexpected payload type")

        if data.get("result") != "success":
            raise UpstreamDataError(data.get("error-type") or "Unknown error")

        rates = self._parse_rates(data.get("conversion_rates"))
        snapshot = RateSnapshot(
            base_currency=str(data.get("base_code") or base).upper(),
            rates=rates,
            fetched_at=self._clock(),
            provider_last_update=data.get("time_last_update_utc"),
            provider_next_update=data.get("time_next_update_utc"),
        )
        logger.info(f"[RATES] Fetched {snapshot.total_currencies} currencies for base {snapshot.base_currency}")
        return snapshot

    @staticmethod
    def _parse_rates(raw: object) -> dict[str, float]:
        if not isinstance(raw, dict) or not raw:
            raise UpstreamDataError("Missing 'conversion_rates' in response")

        rates: dict[str, float] = {}
        for code, value in raw.items():
            # bool — подкласс int
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise UpstreamDataError(f"Non-numeric rate for {code}")
            value = float(value)
            if not math.isfinite(value) or value <= 0:
                raise UpstreamDataError(f"Non-positive rate for {code}")
            rates[str(code).upper()] = value
        return rates
