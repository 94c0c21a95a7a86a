"""
Ошибки сервиса курсов валют.

Каждое исключение несёт `http_status` — код, которым обработчик запроса
должен ответить клиенту. Ошибки провайдера (`UpstreamError`) считаются
временными: `RateStore` гасит их, отдавая устаревший снимок, если он есть.
"""


class CurrencyServiceError(Exception):
    http_status: int = 500


# ошибки провайдера

class UpstreamError(CurrencyServiceError):
    """Провайдер курсов недоступен или вернул некорректный ответ."""


class UpstreamUnreachable(UpstreamError):
    def __init__(self, reason: str):
        super().__init__(f"Upstream unreachable: {reason}")
        self.reason = reason


class UpstreamHttpError(UpstreamError):
    def __init__(self, status: int):
        super().__init__(f"HTTP {status}")
        self.status = status


class UpstreamDataError(UpstreamError):
    def __init__(self, reason: str):
        super().__init__(f"API Error: {reason}")
        self.reason = reason


class NoDataAvailable(CurrencyServiceError):
    """Провайдер не ответил, а в кэше ещё ни разу не было курсов."""

    def __init__(self, cause: Exception | None = None):
        message = "No exchange rate data available"
        if cause is not None:
            message = f"{message}: {cause}"
        super().__init__(message)


# ошибки входных данных

class ConversionError(CurrencyServiceError):
    http_status = 400


class UnsupportedCurrency(ConversionError):
    def __init__(self, code: str):
        super().__init__(f"Currency {code} not supported")
        self.code = code


class InvalidAmount(ConversionError):
    def __init__(self, amount: object):
        super().__init__("Amount must be a positive number")
        self.amount = amount


class UnsupportedBaseCurrency(CurrencyServiceError):
    http_status = 400

    def __init__(self, base: str, supported: str):
        super().__init__(
            f"Base currency {base} not supported. Only {supported} base is available."
        )
        self.base = base
        self.supported = supported


class EmptyBatch(CurrencyServiceError):
    http_status = 400

    def __init__(self):
        super().__init__("No conversions provided")


class BulkLimitExceeded(CurrencyServiceError):
    http_status = 400

    def __init__(self, count: int, limit: int):
        super().__init__(f"Maximum {limit} conversions per request")
        self.count = count
        self.limit = limit
