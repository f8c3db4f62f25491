# Main entry point for the tea tasting Telegram bot

import asyncio
import signal
import sys
from typing import Optional

from aiogram import Bot, Dispatcher
from aiogram.client.default import DefaultBotProperties

from config.settings import TELEGRAM_BOT_TOKEN, API_BASE_URL
from config.logging import setup_logging, get_logger
from bot import main_router
from bot.middleware import ThrottlingMiddleware, LoggingMiddleware

setup_logging()

logger = get_logger(__name__)

# Глобальные переменные для graceful shutdown
_bot: Optional[Bot] = None
_dp: Optional[Dispatcher] = None
_shutdown_event: Optional[asyncio.Event] = None


async def shutdown(sig: Optional[signal.Signals] = None):
    """Graceful shutdown: остановить polling и закрыть сессию бота."""
    if sig:
        logger.info(f"Received signal {sig.name}, shutting down...")
    else:
        logger.info("Shutting down...")

    if _dp:
        logger.info("Stopping dispatcher...")
        await _dp.stop_polling()

    if _bot:
        logger.info("Closing bot session...")
        await _bot.session.close()

    logger.info("Shutdown complete.")

    if _shutdown_event:
        _shutdown_event.set()


def handle_signal(sig: signal.Signals, loop: asyncio.AbstractEventLoop):
    """Обработчик сигналов SIGINT/SIGTERM."""
    logger.info(f"Signal {sig.name} received")
    loop.create_task(shutdown(sig))


async def main():
    global _bot, _dp, _shutdown_event

    if not TELEGRAM_BOT_TOKEN:
        raise RuntimeError("TELEGRAM_BOT_TOKEN не задан в .env")

    _shutdown_event = asyncio.Event()

    loop = asyncio.get_running_loop()
    if sys.platform != "win32":
        for sig in (signal.SIGINT, signal.SIGTERM):
            loop.add_signal_handler(sig, lambda s=sig: handle_signal(s, loop))

    _bot = Bot(
        token=TELEGRAM_BOT_TOKEN,
        default=DefaultBotProperties(parse_mode="HTML"),
    )
    _dp = Dispatcher()

    # Бот не хранит состояние: все данные живут на бэкенде
    _dp.message.middleware(ThrottlingMiddleware(rate_limit=0.5))
    _dp.callback_query.middleware(ThrottlingMiddleware(rate_limit=0.5))
    _dp.message.middleware(LoggingMiddleware())
    _dp.callback_query.middleware(LoggingMiddleware())

    _dp.include_router(main_router)

    try:
        logger.info("Starting bot polling...", api_base_url=API_BASE_URL)
        await _dp.start_polling(_bot, allowed_updates=["message", "callback_query"])
    except asyncio.CancelledError:
        logger.info("Polling cancelled")
    finally:
        if not _shutdown_event.is_set():
            await shutdown()


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        logger.info("Bot stopped by user")
