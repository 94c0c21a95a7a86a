import math
from dataclasses import dataclass
from typing import Iterable, Mapping

from currency_api.services.rates.errors import (
    ConversionError,
    InvalidAmount,
    UnsupportedCurrency,
)
from currency_api.services.rates.snapshot import RateSnapshot


@dataclass(frozen=True)
class Conversion:
    converted_amount: float
    rate: float


@dataclass(frozen=True)
class BulkItemResult:
    from_currency: str | None
    to_currency: str | None
    amount: object
    conversion: Conversion | None = None
    error: ConversionError | None = None

    @property
    def success(self) -> bool:
        return self.conversion is not None


@dataclass(frozen=True)
class BulkResult:
    results: list[BulkItemResult]
    snapshot: RateSnapshot

    @property
    def total(self) -> int:
        return len(self.results)

    @property
    def successful(self) -> int:
        return sum(1 for r in self.results if r.success)

    @property
    def failed(self) -> int:
        return self.total - self.successful


def normalize_code(code: object) -> str:
    return str(code or "").strip().upper()


def _validate_amount(amount: object) -> float:
    if isinstance(amount, bool):
        raise InvalidAmount(amount)
    try:
        value = float(amount)
    except (TypeError, ValueError):
        raise InvalidAmount(amount) from None
    if not math.isfinite(value) or value <= 0:
        raise InvalidAmount(amount)
    return value


def convert(from_currency: str, to_currency: str, amount: float, snapshot: RateSnapshot) -> Conversion:
    """
    Конвертирует сумму через базовую валюту снимка: amount -> base -> target.

    Результат не округляется: округление для показа делает вызывающий код
    (см. `currency_api.utils.formatting`).

    Raises:
        UnsupportedCurrency: валюты нет в снимке (сначала проверяется исходная).
        InvalidAmount: сумма не является конечным положительным числом.
    """
    from_code = normalize_code(from_currency)
    to_code = normalize_code(to_currency)
    rates = snapshot.rates

    if from_code not in rates:
        raise UnsupportedCurrency(from_code)
    if to_code not in rates:
        raise UnsupportedCurrency(to_code)

    value = _validate_amount(amount)

    amount_in_base = value / rates[from_code]
    converted = amount_in_base * rates[to_code]

    return Conversion(
        converted_amount=converted,
        rate=rates[to_code] / rates[from_code],
    )


def convert_bulk(items: Iterable[object], snapshot: RateSnapshot) -> BulkResult:
    """Выполняет `convert` для каждого элемента на одном и том же снимке.

    Ошибка одного элемента не прерывает пакет: она попадает в его результат.
    Сумма проверяется раньше кодов валют, как и при одиночной конвертации.
    Элемент, не являющийся словарём, считается пустым.
    """
    results: list[BulkItemResult] = []
    for item in items:
        if not isinstance(item, Mapping):
            item = {}
        from_currency = item.get("from")
        to_currency = item.get("to")
        amount = item.get("amount")
        try:
            value = _validate_amount(amount)
            conversion = convert(from_currency, to_currency, value, snapshot)
        except ConversionError as e:
            results.append(BulkItemResult(
                from_currency=normalize_code(from_currency) or None,
                to_currency=normalize_code(to_currency) or None,
                amount=amount,
                error=e,
            ))
            continue
        results.append(BulkItemResult(
            from_currency=normalize_code(from_currency),
            to_currency=normalize_code(to_currency),
            amount=value,
            conversion=conversion,
        ))
    return BulkResult(results=results, snapshot=snapshot)
