# Bot middleware: throttling and update logging

import time
from typing import Any, Awaitable, Callable, Dict, Optional

from aiogram import BaseMiddleware
from aiogram.types import Message, TelegramObject, CallbackQuery

from config.logging import get_logger, bind_request_context, clear_request_context
from utils.metrics import telegram_messages_total, message_processing_duration, errors_total

logger = get_logger(__name__)


class ThrottlingMiddleware(BaseMiddleware):
    """
    Ограничение частоты апдейтов от одного пользователя.

    Каждый запрос ссылки обращается к бэкенду, поэтому повторные
    нажатия кнопок чаще `rate_limit` секунд отбрасываются.
    """

    def __init__(self, rate_limit: float = 0.5, throttle_message: Optional[str] = None):
        self.rate_limit = rate_limit
        self.throttle_message = throttle_message
        self._last_seen: Dict[int, float] = {}
        super().__init__()

    def _cleanup(self, now: float) -> None:
        cutoff = now - 3600
        self._last_seen = {uid: t for uid, t in self._last_seen.items() if t > cutoff}

    async def __call__(
        self,
        handler: Callable[[TelegramObject, Dict[str, Any]], Awaitable[Any]],
        event: TelegramObject,
        data: Dict[str, Any],
    ) -> Any:
        user = getattr(event, "from_user", None)
        if user is None:
            return await handler(event, data)

        now = time.monotonic()
        last = self._last_seen.get(user.id)

        if last is not None and now - last < self.rate_limit:
            logger.debug("update_throttled", user_id=user.id, interval=round(now - last, 2))
            if isinstance(event, CallbackQuery):
                # Иначе у пользователя «крутится» кнопка
                await event.answer(self.throttle_message)
            elif self.throttle_message:
                await event.answer(self.throttle_message)
            return None

        self._last_seen[user.id] = now
        if len(self._last_seen) > 1000:
            self._cleanup(now)

        return await handler(event, data)


def _describe(event: TelegramObject) -> tuple[str, Optional[str]]:
    """Тип апдейта для метрик и короткое описание для лога."""
    if isinstance(event, Message):
        text = event.text or event.caption or "[media]"
        return ("command" if text.startswith("/") else "text"), text[:100]
    if isinstance(event, CallbackQuery):
        return "callback", f"callback:{event.data}"
    return "other", type(event).__name__


class LoggingMiddleware(BaseMiddleware):
    """Логирование входящих апдейтов с контекстом пользователя и метриками."""

    async def __call__(
        self,
        handler: Callable[[TelegramObject, Dict[str, Any]], Awaitable[Any]],
        event: TelegramObject,
        data: Dict[str, Any],
    ) -> Any:
        start_time = time.time()
        message_type, summary = _describe(event)
        telegram_messages_total.labels(message_type=message_type).inc()

        user = getattr(event, "from_user", None)
        if user:
            bind_request_context(telegram_id=user.id, username=user.username)

        logger.info("incoming_update", update_type=message_type, text=summary)

        try:
            return await handler(event, data)
        except Exception as e:
            errors_total.labels(type="handler_error", module="bot").inc()
            logger.error("handler_error", error=str(e), exc_info=True)
            raise
        finally:
            message_processing_duration.labels(handler=message_type).observe(time.time() - start_time)
            clear_request_context()
