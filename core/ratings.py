# Rating submission and validation

from typing import Any, Iterable, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from cache import invalidate_tasting_summary
from config.logging import get_logger
from database import (
    Rating,
    RatingDimension,
    get_sample,
    get_user_by_id,
    upsert_rating,
)
from utils.metrics import ratings_submitted

from .errors import AuthorizationError, NotFoundError, ValidationError

logger = get_logger(__name__)


def validate_rating_data(
    data: Any,
    dimensions: Iterable[RatingDimension],
) -> dict[str, int]:
    """
    Проверить оценку по осям дегустации.

    Каждый ключ: код активной оси, каждое значение: целое число
    в диапазоне [min_value, max_value]. Заполнять все оси не обязательно.

    Raises:
        ValidationError: со списком ошибок по каждому ключу в details
    """
    if not isinstance(data, dict) or not data:
        raise ValidationError("Оценка должна содержать хотя бы одну ось")

    active = {d.code: d for d in dimensions if d.is_active}
    errors: dict[str, str] = {}

    for code, value in data.items():
        dimension = active.get(code)
        if dimension is None:
            errors[code] = "неизвестная ось оценки"
        elif isinstance(value, bool) or not isinstance(value, int):
            errors[code] = "значение должно быть целым числом"
        elif not dimension.min_value <= value <= dimension.max_value:
            errors[code] = (
                f"значение должно быть от {dimension.min_value} до {dimension.max_value}"
            )

    if errors:
        raise ValidationError("Некорректная оценка", details=errors)

    return {code: int(value) for code, value in data.items()}


async def submit_rating(
    db: AsyncSession,
    user_id: int,
    tea_sample_id: int,
    data: Any,
    comment: Optional[str] = None,
    tasting_id: Any = None,
) -> Rating:
    """
    Сохранить оценку образца. Повторная отправка заменяет прежнюю оценку.

    tasting_id: дегустация из контекста ссылки; образец должен принадлежать ей.

    Raises:
        NotFoundError: нет пользователя или образца
        AuthorizationError: образец из другой дегустации
        ValidationError: дегустация в архиве или оценка не проходит проверку по осям
    """
    user = await get_user_by_id(db, user_id)
    if not user:
        raise NotFoundError("Пользователь не найден", details={"user_id": user_id})

    sample = await get_sample(db, tea_sample_id)
    if not sample:
        raise NotFoundError("Образец не найден", details={"tea_sample_id": tea_sample_id})

    if tasting_id is not None and str(sample.tasting_id) != str(tasting_id):
        raise AuthorizationError(
            "Ссылка выдана для другой дегустации",
            details={"tasting_id": tasting_id, "sample_tasting_id": sample.tasting_id},
        )

    if not sample.tasting.is_active:
        raise ValidationError("Дегустация завершена, оценки не принимаются")

    clean = validate_rating_data(data, sample.tasting.dimensions)

    rating = await upsert_rating(
        db,
        user_id=user_id,
        tea_sample_id=tea_sample_id,
        data=clean,
        comment=comment,
    )

    await invalidate_tasting_summary(sample.tasting_id)
    ratings_submitted.inc()
    logger.info(
        "rating_submitted",
        user_id=user_id,
        tea_sample_id=tea_sample_id,
        tasting_id=sample.tasting_id,
    )
    return rating
