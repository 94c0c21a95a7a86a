from dotenv import load_dotenv
load_dotenv()

from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field

class Settings(BaseSettings):
    """Конфигурация сервиса курсов валют.

    Настройки подгружаются из переменных окружения и файла `.env`.
    Используются при сборке `RateStore`/`RatesService`, планировщика
    обновления курсов и обработчика алертов.

    Атрибуты:
        EXCHANGE_API_KEY (str): Ключ ExchangeRate-API (подставляется в путь запроса).
        EXCHANGE_API_BASE_URL (str): Базовый URL провайдера курсов.
        BASE_CURRENCY (str): Базовая валюта снимка курсов (по умолчанию USD).
        REFRESH_INTERVAL_SECONDS (float): TTL кэша курсов в секундах.
        REQUEST_TIMEOUT_SECONDS (float): Таймаут запроса к провайдеру.
        BULK_MAX_ITEMS (int): Максимум конвертаций в одном пакетном запросе.
        REFRESH_CRON (str): Cron-выражение для фонового обновления курсов.
        LOG_LEVEL (str): Уровень логирования.
        TELEGRAM_BOT_ALERT (str | None): Токен бота для алертов.
        TELEGRAM_ALERT_CHAT_ID (str | None): Чаты для алертов через запятую.
    """
    EXCHANGE_API_KEY: str = Field(default="", alias="EXCHANGE_API_KEY")
    EXCHANGE_API_BASE_URL: str = Field(
        default="https://v6.exchangerate-api.com/v6", alias="EXCHANGE_API_BASE_URL"
    )
    BASE_CURRENCY: str = Field(default="USD", alias="BASE_CURRENCY")
    REFRESH_INTERVAL_SECONDS: float = Field(default=60.0, gt=0, alias="REFRESH_INTERVAL_SECONDS")
    REQUEST_TIMEOUT_SECONDS: float = Field(default=10.0, gt=0, alias="REQUEST_TIMEOUT_SECONDS")
    BULK_MAX_ITEMS: int = Field(default=200, gt=0, alias="BULK_MAX_ITEMS")
    REFRESH_CRON: str = Field(default="* * * * *", alias="REFRESH_CRON")
    LOG_LEVEL: str = Field(default="INFO", alias="LOG_LEVEL")
    TELEGRAM_BOT_ALERT: str | None = Field(default=None, alias="TELEGRAM_BOT_ALERT")
    TELEGRAM_ALERT_CHAT_ID: str | None = Field(default=None, alias="TELEGRAM_ALERT_CHAT_ID")

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore"
    )

settings = Settings()
