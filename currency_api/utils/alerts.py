"""
Настройка логирования и алерты об ошибках в Telegram.

`setup_logging()` настраивает корневой логгер (консоль) и подключает
`TelegramAlertHandler`, который отправляет записи уровня WARNING и выше
(например, откат на устаревшие курсы или недоступность провайдера) в чаты
Telegram через отдельного бота.

Переменные окружения:
- TELEGRAM_BOT_ALERT — токен Telegram-бота для алёртов (обязателен для отправки).
- TELEGRAM_ALERT_CHAT_ID — идентификатор(-ы) чатов (user/group) через запятую.
  Пример: "123456789,-1001234567890". Если значения не заданы, обработчик работает как no-op.
"""
import asyncio
import logging
from typing import List, Optional

from aiogram import Bot

from currency_api.config import settings

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
LOG_DATEFMT = "%Y-%m-%d %H:%M:%S"


class TelegramAlertHandler(logging.Handler):
    """Обработчик логов, отправляющий записи уровня WARNING+ в Telegram через отдельного бота.

    Отправка асинхронная: запись превращается в задачу текущего event loop.
    Вне event loop (например, при синхронном старте) запись пропускается.
    """

    def __init__(
        self,
        level: int = logging.WARNING,
        token: Optional[str] = None,
        chat_ids: Optional[str] = None,
    ) -> None:
        super().__init__(level=level)
        self._token: Optional[str] = token if token is not None else settings.TELEGRAM_BOT_ALERT
        self._chat_ids: List[int] = self._parse_chat_ids(
            chat_ids if chat_ids is not None else settings.TELEGRAM_ALERT_CHAT_ID
        )
        self._bot: Optional[Bot] = None
        self._pending: set[asyncio.Task] = set()

        if self._token and self._chat_ids:
            self._bot = Bot(token=self._token)

    @property
    def enabled(self) -> bool:
        return self._bot is not None

    @property
    def chat_ids(self) -> List[int]:
        return list(self._chat_ids)

    @staticmethod
    def _parse_chat_ids(raw: Optional[str]) -> List[int]:
        if not raw:
            return []
        ids: List[int] = []
        for part in raw.split(","):
            part = part.strip()
            if not part:
                continue
            try:
                ids.append(int(part))
            except ValueError:
                continue
        return ids

    def emit(self, record: logging.LogRecord) -> None:
        if self._bot is None:
            return

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            return

        try:
            msg = self.format(record)
            task = loop.create_task(self._send(msg))
            self._pending.add(task)
            task.add_done_callback(self._pending.discard)
        except Exception:
            self.handleError(record)

    async def _send(self, text: str) -> None:
        assert self._bot is not None
        for chat_id in self._chat_ids:
            try:
                await self._bot.send_message(chat_id=chat_id, text=f"🚨 Alert:\n{text}")
            except Exception as e:
                # не через logging, иначе запись снова попадёт в этот обработчик
                print(f"[ALERT] Failed to send alert to {chat_id}: {e}")


def setup_logging(level: str | None = None) -> None:
    """Настраивает корневой логгер и подключает `TelegramAlertHandler`.

    Функцию можно вызывать многократно — дубликаты обработчиков не будут добавлены.
    """
    root = logging.getLogger()
    root.setLevel((level or settings.LOG_LEVEL).upper())
    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=LOG_DATEFMT)

    if not any(type(h) is logging.StreamHandler for h in root.handlers):
        console = logging.StreamHandler()
        console.setFormatter(formatter)
        root.addHandler(console)

    if not any(isinstance(h, TelegramAlertHandler) for h in root.handlers):
        handler = TelegramAlertHandler(level=logging.WARNING)
        handler.setFormatter(formatter)
        root.addHandler(handler)
