# Structured logging configuration with structlog

import logging
import sys
from typing import Any

import structlog

from config.settings import JSON_LOGS, LOG_LEVEL


def setup_logging(json_logs: bool = JSON_LOGS, log_level: str = LOG_LEVEL):
    """
    Настройка структурированного логирования для бота и API.

    Args:
        json_logs: Если True, логи выводятся в JSON (для production)
        log_level: Уровень логирования (DEBUG, INFO, WARNING, ERROR)
    """
    level = getattr(logging, log_level.upper())

    shared_processors = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    if json_logs:
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=True)

    structlog.configure(
        processors=shared_processors + [renderer],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )

    # Стандартный logging для сторонних библиотек и модулей на logging.getLogger
    logging.basicConfig(
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        level=level,
        stream=sys.stdout,
    )

    # Шумные библиотеки
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("aiogram").setLevel(logging.INFO)
    logging.getLogger("apscheduler").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)


def get_logger(name: str = None) -> structlog.BoundLogger:
    """
    Получить структурированный логгер.

    Пример:
        logger = get_logger(__name__)
        logger.info("link_issued", user_id=1, purpose="rating_page")
    """
    if name:
        return structlog.get_logger(name)
    return structlog.get_logger()


def bind_request_context(**kwargs: Any):
    """Добавить контекст (user_id, path, ...) ко всем логам текущего запроса."""
    structlog.contextvars.bind_contextvars(**kwargs)


def clear_request_context():
    """Очистить контекст запроса."""
    structlog.contextvars.clear_contextvars()
