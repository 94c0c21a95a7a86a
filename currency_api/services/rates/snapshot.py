from __future__ import annotations

import enum
from dataclasses import dataclass, field, replace
from datetime import datetime
from types import MappingProxyType
from typing import Mapping


class Freshness(str, enum.Enum):
    FRESH = "fresh"
    STALE = "stale_cache"


@dataclass(frozen=True)
class RateSnapshot:
    """Снимок курсов, полученный от провайдера.

    `rates[code]` — сколько единиц `code` стоит 1 единица базовой валюты.
    Снимок неизменяем: `RateStore` заменяет его целиком при каждом
    успешном обновлении, а пометка «устаревший» делается копией.
    """
    base_currency: str
    rates: Mapping[str, float]
    fetched_at: datetime
    provider_last_update: str | None = None
    provider_next_update: str | None = None
    freshness: Freshness = Freshness.FRESH
    error: Exception | None = field(default=None, compare=False)

    def __post_init__(self) -> None:
        if not self.rates:
            raise ValueError("RateSnapshot requires at least one rate")
        object.__setattr__(self, "rates", MappingProxyType(dict(self.rates)))

    @property
    def total_currencies(self) -> int:
        return len(self.rates)

    @property
    def is_stale(self) -> bool:
        return self.freshness is Freshness.STALE

    def as_fresh(self) -> RateSnapshot:
        if self.freshness is Freshness.FRESH and self.error is None:
            return self
        return replace(self, freshness=Freshness.FRESH, error=None)

    def as_stale(self, error: Exception) -> RateSnapshot:
        return replace(self, freshness=Freshness.STALE, error=error)
