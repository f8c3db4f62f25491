# Tasting administration: tastings, samples, dimensions

from typing import Any, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from cache import invalidate_tasting_summary
from config.logging import get_logger
from database import (
    RatingDimension,
    Tasting,
    TeaSample,
    create_dimension,
    create_sample,
    get_dimension,
    get_dimension_by_code,
    get_sample,
    get_sample_by_position,
    get_next_sample_position,
    get_tasting,
    update_dimension,
    update_sample,
    update_tasting,
)

from .errors import NotFoundError, ValidationError

logger = get_logger(__name__)


async def get_tasting_or_404(db: AsyncSession, tasting_id: int) -> Tasting:
    tasting = await get_tasting(db, tasting_id)
    if not tasting:
        raise NotFoundError("Дегустация не найдена", details={"tasting_id": tasting_id})
    return tasting


async def edit_tasting(
    db: AsyncSession,
    tasting_id: int,
    fields: dict[str, Any],
) -> Tasting:
    """Обновить дегустацию (только переданные поля)."""
    tasting = await get_tasting_or_404(db, tasting_id)
    updated = await update_tasting(db, tasting, fields)
    await invalidate_tasting_summary(tasting_id)
    return updated


async def add_sample(
    db: AsyncSession,
    tasting_id: int,
    name: str,
    description: Optional[str] = None,
    position: Optional[int] = None,
) -> TeaSample:
    """
    Добавить образец. Без position образец встаёт в конец списка.

    Raises:
        NotFoundError: нет такой дегустации
        ValidationError: позиция уже занята
    """
    await get_tasting_or_404(db, tasting_id)

    if position is None:
        position = await get_next_sample_position(db, tasting_id)
    elif await get_sample_by_position(db, tasting_id, position):
        raise ValidationError(
            "Позиция уже занята другим образцом",
            details={"position": position},
        )

    sample = await create_sample(
        db,
        tasting_id=tasting_id,
        name=name,
        position=position,
        description=description,
    )
    await invalidate_tasting_summary(tasting_id)
    return sample


async def edit_sample(
    db: AsyncSession,
    sample_id: int,
    fields: dict[str, Any],
) -> TeaSample:
    sample = await get_sample(db, sample_id)
    if not sample:
        raise NotFoundError("Образец не найден", details={"tea_sample_id": sample_id})

    position = fields.get("position")
    if position is not None and position != sample.position:
        if await get_sample_by_position(db, sample.tasting_id, position):
            raise ValidationError(
                "Позиция уже занята другим образцом",
                details={"position": position},
            )

    updated = await update_sample(db, sample, fields)
    await invalidate_tasting_summary(sample.tasting_id)
    return updated


async def add_dimension(
    db: AsyncSession,
    tasting_id: int,
    code: str,
    name: str,
    min_value: int = 0,
    max_value: int = 10,
    position: Optional[int] = None,
) -> RatingDimension:
    """
    Добавить ось оценки.

    Raises:
        NotFoundError: нет такой дегустации
        ValidationError: код уже есть в дегустации или пустой диапазон
    """
    await get_tasting_or_404(db, tasting_id)

    if min_value >= max_value:
        raise ValidationError(
            "min_value должен быть меньше max_value",
            details={"min_value": min_value, "max_value": max_value},
        )

    if await get_dimension_by_code(db, tasting_id, code):
        raise ValidationError(
            "Ось с таким кодом уже есть в дегустации",
            details={"code": code},
        )

    dimension = await create_dimension(
        db,
        tasting_id=tasting_id,
        code=code,
        name=name,
        min_value=min_value,
        max_value=max_value,
        position=position,
    )
    await invalidate_tasting_summary(tasting_id)
    return dimension


async def edit_dimension(
    db: AsyncSession,
    dimension_id: int,
    fields: dict[str, Any],
) -> RatingDimension:
    """Обновить ось оценки. Код оси не меняется: на него ссылаются оценки."""
    dimension = await get_dimension(db, dimension_id)
    if not dimension:
        raise NotFoundError("Ось оценки не найдена", details={"dimension_id": dimension_id})

    min_value = fields.get("min_value", dimension.min_value)
    max_value = fields.get("max_value", dimension.max_value)
    if min_value >= max_value:
        raise ValidationError(
            "min_value должен быть меньше max_value",
            details={"min_value": min_value, "max_value": max_value},
        )

    updated = await update_dimension(db, dimension, fields)
    await invalidate_tasting_summary(dimension.tasting_id)
    logger.info("dimension_updated", dimension_id=dimension_id, fields=sorted(fields))
    return updated
