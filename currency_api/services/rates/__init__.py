from currency_api.services.rates.converter import (
    BulkItemResult,
    BulkResult,
    Conversion,
    convert,
    convert_bulk,
)
from currency_api.services.rates.errors import (
    BulkLimitExceeded,
    ConversionError,
    CurrencyServiceError,
    EmptyBatch,
    InvalidAmount,
    NoDataAvailable,
    UnsupportedBaseCurrency,
    UnsupportedCurrency,
    UpstreamDataError,
    UpstreamError,
    UpstreamHttpError,
    UpstreamUnreachable,
)
from currency_api.services.rates.provider import ExchangeRateProvider
from currency_api.services.rates.snapshot import Freshness, RateSnapshot
from currency_api.services.rates.store import RateStore

__all__ = [
    "BulkItemResult",
    "BulkLimitExceeded",
    "BulkResult",
    "Conversion",
    "ConversionError",
    "CurrencyServiceError",
    "EmptyBatch",
    "ExchangeRateProvider",
    "Freshness",
    "InvalidAmount",
    "NoDataAvailable",
    "RateSnapshot",
    "RateStore",
    "UnsupportedBaseCurrency",
    "UnsupportedCurrency",
    "UpstreamDataError",
    "UpstreamError",
    "UpstreamHttpError",
    "UpstreamUnreachable",
    "convert",
    "convert_bulk",
]
