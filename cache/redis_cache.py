# Redis caching for tasting summaries

import json
from typing import Any, Dict, Optional

import redis.asyncio as redis

from config.settings import REDIS_URL
from config.logging import get_logger

logger = get_logger(__name__)

# Глобальный клиент Redis (None = работаем без кэша)
_redis_client: Optional[redis.Redis] = None

# Время жизни кэша (в секундах)
CACHE_TTL = {
    "tasting_summary": 300,      # 5 минут: сводка дегустации
    "default": 600,              # 10 минут по умолчанию
}

KEY_PREFIX = "tea_tasting:"


async def init_cache() -> bool:
    """
    Подключиться к Redis.

    Returns:
        True если подключение успешно, False если Redis недоступен
    """
    global _redis_client

    try:
        _redis_client = redis.from_url(
            REDIS_URL,
            encoding="utf-8",
            decode_responses=True,
            socket_connect_timeout=5,
            socket_timeout=5,
        )
        await _redis_client.ping()
        logger.info("redis_connected", url=REDIS_URL.split("@")[-1])  # Скрываем пароль
        return True

    except Exception as e:
        logger.warning("redis_connection_failed", error=str(e))
        _redis_client = None
        return False


async def close_cache():
    """Закрыть подключение к Redis."""
    global _redis_client

    if _redis_client:
        await _redis_client.aclose()
        _redis_client = None
        logger.info("redis_closed")


def is_cache_available() -> bool:
    return _redis_client is not None


async def get_cache(key: str) -> Optional[Any]:
    """
    Получить значение из кэша.

    Returns:
        Значение или None если не найдено / Redis недоступен
    """
    if not _redis_client:
        return None

    try:
        value = await _redis_client.get(f"{KEY_PREFIX}{key}")
        if value:
            logger.debug("cache_hit", key=key)
            return json.loads(value)

        logger.debug("cache_miss", key=key)
        return None

    except Exception as e:
        logger.warning("cache_get_error", key=key, error=str(e))
        return None


async def set_cache(key: str, value: Any, ttl: int = None) -> bool:
    """Сохранить значение в кэш (JSON). False если Redis недоступен."""
    if not _redis_client:
        return False

    try:
        ttl = ttl or CACHE_TTL["default"]
        await _redis_client.setex(
            f"{KEY_PREFIX}{key}",
            ttl,
            json.dumps(value, ensure_ascii=False, default=str),
        )
        logger.debug("cache_set", key=key, ttl=ttl)
        return True

    except Exception as e:
        logger.warning("cache_set_error", key=key, error=str(e))
        return False


async def delete_cache(key: str) -> bool:
    """Удалить ключ из кэша."""
    if not _redis_client:
        return False

    try:
        await _redis_client.delete(f"{KEY_PREFIX}{key}")
        logger.debug("cache_delete", key=key)
        return True

    except Exception as e:
        logger.warning("cache_delete_error", key=key, error=str(e))
        return False


# === Сводки дегустаций ===
#
# Ключ сводки содержит версию дегустации. Инвалидация увеличивает версию,
# поэтому сводка, посчитанная до новой оценки, пишется под устаревший ключ
# и больше не читается.

def _summary_version_key(tasting_id: int) -> str:
    return f"{KEY_PREFIX}tasting_summary_version:{tasting_id}"


async def get_tasting_summary_version(tasting_id: int) -> int:
    """Текущая версия сводки (0 если Redis недоступен или версии ещё нет)."""
    if not _redis_client:
        return 0

    try:
        value = await _redis_client.get(_summary_version_key(tasting_id))
        return int(value) if value else 0

    except Exception as e:
        logger.warning("cache_version_error", tasting_id=tasting_id, error=str(e))
        return 0


async def cache_tasting_summary(tasting_id: int, version: int, summary: Dict) -> bool:
    return await set_cache(
        f"tasting_summary:{tasting_id}:v{version}",
        summary,
        CACHE_TTL["tasting_summary"],
    )


async def get_cached_tasting_summary(tasting_id: int, version: int) -> Optional[Dict]:
    return await get_cache(f"tasting_summary:{tasting_id}:v{version}")


async def invalidate_tasting_summary(tasting_id: int):
    """Сбросить сводку после новой оценки или правки дегустации."""
    if not _redis_client:
        return

    try:
        await _redis_client.incr(_summary_version_key(tasting_id))
        logger.debug("cache_invalidate", tasting_id=tasting_id)

    except Exception as e:
        logger.warning("cache_invalidate_error", tasting_id=tasting_id, error=str(e))
