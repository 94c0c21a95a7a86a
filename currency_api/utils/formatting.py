import math
from decimal import Decimal, InvalidOperation


RATE_DECIMALS = 6
AMOUNT_DECIMALS = 2


def parse_amount(s: object) -> float | None:
    """Парсинг суммы из параметров запроса.

    Принимает число или строку ("100", "1 234,5"). Используется обработчиками
    перед вызовом конвертера.

    Args:
        s: Значение из query-параметра или тела запроса.

    Returns:
        float | None: Положительное конечное число, иначе None.
    """
    if s is None or isinstance(s, bool):
        return None
    if isinstance(s, (int, float)):
        v = float(s)
        return v if math.isfinite(v) and v > 0 else None
    t = str(s).replace(" ", "").replace(",", ".")
    if not t:
        return None
    try:
        v = Decimal(t)
    except (InvalidOperation, ValueError):
        return None
    if not v.is_finite() or v <= 0:
        return None
    return float(v)


def parse_amount_list(s: str) -> list[float | None]:
    """Разбирает список сумм через запятую: "100,200,300".

    Нераспознанные значения остаются в списке как None, чтобы ошибка
    попала в результат соответствующего элемента.
    """
    if not s:
        return []
    return [parse_amount(part.strip()) for part in s.split(",")]


def round_rate(rate: float) -> float:
    return round(rate, RATE_DECIMALS)


def round_amount(amount: float) -> float:
    return round(amount, AMOUNT_DECIMALS)


def fmt_money_str(v: float) -> str:
    """Сумма для показа: разделители тысяч пробелом, без '.00' у целых."""
    txt = f"{v:,.{AMOUNT_DECIMALS}f}".replace(",", " ")
    return txt[:-3] if txt.endswith(".00") else txt
