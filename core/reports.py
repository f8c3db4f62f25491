# Reports: tasting summary and user profile

from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from cache import (
    cache_tasting_summary,
    get_cached_tasting_summary,
    get_tasting_summary_version,
)
from database import get_tasting_ratings, get_user_by_id, get_user_tasting_ratings

from .aggregation import build_tasting_summary, build_user_profile
from .errors import NotFoundError
from .tastings import get_tasting_or_404


async def get_tasting_summary(db: AsyncSession, tasting_id: int) -> dict[str, Any]:
    """Сводка дегустации (из кэша, если он доступен)."""
    # Версия читается до запроса к БД: см. cache.redis_cache
    version = await get_tasting_summary_version(tasting_id)
    cached = await get_cached_tasting_summary(tasting_id, version)
    if cached is not None:
        return cached

    tasting = await get_tasting_or_404(db, tasting_id)
    ratings = await get_tasting_ratings(db, tasting_id)
    summary = build_tasting_summary(tasting, ratings)

    await cache_tasting_summary(tasting_id, version, summary)
    return summary


async def get_user_profile(
    db: AsyncSession,
    user_id: int,
    tasting_id: int,
) -> dict[str, Any]:
    """Профиль участника: его оценки, средние по осям и сравнение с группой."""
    user = await get_user_by_id(db, user_id)
    if not user:
        raise NotFoundError("Пользователь не найден", details={"user_id": user_id})

    tasting = await get_tasting_or_404(db, tasting_id)
    user_ratings = await get_user_tasting_ratings(db, user_id, tasting_id)
    all_ratings = await get_tasting_ratings(db, tasting_id)

    return build_user_profile(tasting, user, user_ratings, all_ratings)
