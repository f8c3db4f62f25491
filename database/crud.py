# Database CRUD operations

import logging
from datetime import datetime
from typing import Any, Optional

from sqlalchemy import delete, func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from .models import (
    AuthLink,
    AuthLinkPurpose,
    Rating,
    RatingDimension,
    Tasting,
    TeaSample,
    User,
)

logger = logging.getLogger(__name__)


# ═══════════════════════════════════════════════════════════════════
# User CRUD
# ═══════════════════════════════════════════════════════════════════

async def get_user_by_telegram_id(
    db: AsyncSession,
    telegram_id: int,
) -> Optional[User]:
    """Получить пользователя по Telegram ID."""
    result = await db.execute(
        select(User).where(User.telegram_id == telegram_id)
    )
    return result.scalar_one_or_none()


async def get_user_by_id(db: AsyncSession, user_id: int) -> Optional[User]:
    """Получить пользователя по ID."""
    result = await db.execute(select(User).where(User.id == user_id))
    return result.scalar_one_or_none()


async def upsert_user(
    db: AsyncSession,
    telegram_id: int,
    username: Optional[str] = None,
    full_name: Optional[str] = None,
    make_admin: bool = False,
) -> User:
    """
    Создать пользователя при первом обращении к боту или обновить данные.
    Флаг админа только выставляется, но не снимается.
    """
    def apply(existing: User) -> None:
        existing.username = username
        if full_name:
            existing.full_name = full_name
        if make_admin:
            existing.is_admin = True

    user = await get_user_by_telegram_id(db, telegram_id)

    if user:
        apply(user)
        await db.commit()
    else:
        user = User(
            telegram_id=telegram_id,
            username=username,
            full_name=full_name,
            is_admin=make_admin,
        )
        db.add(user)
        try:
            await db.commit()
        except IntegrityError:
            # Параллельный /start успел создать пользователя первым
            await db.rollback()
            user = await get_user_by_telegram_id(db, telegram_id)
            apply(user)
            await db.commit()

    await db.refresh(user)

    logger.info(f"Upserted user: {user}")
    return user


# ═══════════════════════════════════════════════════════════════════
# Tasting CRUD
# ═══════════════════════════════════════════════════════════════════

async def create_tasting(
    db: AsyncSession,
    title: str,
    created_by_id: Optional[int],
    description: Optional[str] = None,
    scheduled_at: Optional[datetime] = None,
) -> Tasting:
    """Создать дегустацию."""
    tasting = Tasting(
        title=title,
        description=description,
        scheduled_at=scheduled_at,
        created_by_id=created_by_id,
        is_active=True,
    )

    db.add(tasting)
    await db.commit()

    logger.info(f"Created tasting: {tasting}")
    return await get_tasting(db, tasting.id)


async def get_tasting(db: AsyncSession, tasting_id: int) -> Optional[Tasting]:
    """Получить дегустацию вместе с образцами и осями оценки."""
    result = await db.execute(
        select(Tasting)
        .options(
            selectinload(Tasting.samples),
            selectinload(Tasting.dimensions),
        )
        .where(Tasting.id == tasting_id)
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def get_all_tastings(
    db: AsyncSession,
    only_active: bool = False,
) -> list[Tasting]:
    """Получить список дегустаций (свежие сверху)."""
    query = select(Tasting)

    if only_active:
        query = query.where(Tasting.is_active == True)

    query = query.order_by(Tasting.created_at.desc(), Tasting.id.desc())

    result = await db.execute(query)
    return list(result.scalars().all())


async def update_tasting(
    db: AsyncSession,
    tasting: Tasting,
    fields: dict[str, Any],
) -> Tasting:
    """Обновить поля дегустации."""
    for key, value in fields.items():
        setattr(tasting, key, value)

    await db.commit()

    logger.info(f"Updated tasting {tasting.id}: {sorted(fields)}")
    return await get_tasting(db, tasting.id)


# ═══════════════════════════════════════════════════════════════════
# TeaSample CRUD
# ═══════════════════════════════════════════════════════════════════

async def get_next_sample_position(db: AsyncSession, tasting_id: int) -> int:
    """Следующий свободный порядковый номер образца."""
    result = await db.execute(
        select(func.max(TeaSample.position)).where(TeaSample.tasting_id == tasting_id)
    )
    current = result.scalar()
    return (current or 0) + 1


async def get_sample_by_position(
    db: AsyncSession,
    tasting_id: int,
    position: int,
) -> Optional[TeaSample]:
    """Получить образец по порядковому номеру."""
    result = await db.execute(
        select(TeaSample).where(
            TeaSample.tasting_id == tasting_id,
            TeaSample.position == position,
        )
    )
    return result.scalar_one_or_none()


async def create_sample(
    db: AsyncSession,
    tasting_id: int,
    name: str,
    position: int,
    description: Optional[str] = None,
) -> TeaSample:
    """Добавить образец в дегустацию."""
    sample = TeaSample(
        tasting_id=tasting_id,
        name=name,
        position=position,
        description=description,
    )

    db.add(sample)
    await db.commit()
    await db.refresh(sample)

    logger.info(f"Created sample: {sample} in tasting {tasting_id}")
    return sample


async def get_sample(db: AsyncSession, sample_id: int) -> Optional[TeaSample]:
    """Получить образец вместе с дегустацией и её осями оценки."""
    result = await db.execute(
        select(TeaSample)
        .options(selectinload(TeaSample.tasting).selectinload(Tasting.dimensions))
        .where(TeaSample.id == sample_id)
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def update_sample(
    db: AsyncSession,
    sample: TeaSample,
    fields: dict[str, Any],
) -> TeaSample:
    """Обновить поля образца."""
    for key, value in fields.items():
        setattr(sample, key, value)

    await db.commit()
    await db.refresh(sample)

    logger.info(f"Updated sample {sample.id}: {sorted(fields)}")
    return sample


# ═══════════════════════════════════════════════════════════════════
# RatingDimension CRUD
# ═══════════════════════════════════════════════════════════════════

async def get_dimension_by_code(
    db: AsyncSession,
    tasting_id: int,
    code: str,
) -> Optional[RatingDimension]:
    """Получить ось оценки по коду."""
    result = await db.execute(
        select(RatingDimension).where(
            RatingDimension.tasting_id == tasting_id,
            RatingDimension.code == code,
        )
    )
    return result.scalar_one_or_none()


async def get_dimension(db: AsyncSession, dimension_id: int) -> Optional[RatingDimension]:
    """Получить ось оценки по ID."""
    result = await db.execute(
        select(RatingDimension).where(RatingDimension.id == dimension_id)
    )
    return result.scalar_one_or_none()


async def create_dimension(
    db: AsyncSession,
    tasting_id: int,
    code: str,
    name: str,
    min_value: int = 0,
    max_value: int = 10,
    position: Optional[int] = None,
) -> RatingDimension:
    """Добавить ось оценки в дегустацию."""
    if position is None:
        result = await db.execute(
            select(func.count(RatingDimension.id)).where(
                RatingDimension.tasting_id == tasting_id
            )
        )
        position = result.scalar() or 0

    dimension = RatingDimension(
        tasting_id=tasting_id,
        code=code,
        name=name,
        min_value=min_value,
        max_value=max_value,
        position=position,
        is_active=True,
    )

    db.add(dimension)
    await db.commit()
    await db.refresh(dimension)

    logger.info(f"Created dimension: {dimension} in tasting {tasting_id}")
    return dimension


async def update_dimension(
    db: AsyncSession,
    dimension: RatingDimension,
    fields: dict[str, Any],
) -> RatingDimension:
    """Обновить ось оценки (включая деактивацию)."""
    for key, value in fields.items():
        setattr(dimension, key, value)

    await db.commit()
    await db.refresh(dimension)

    logger.info(f"Updated dimension {dimension.id}: {sorted(fields)}")
    return dimension


# ═══════════════════════════════════════════════════════════════════
# Rating CRUD
# ═══════════════════════════════════════════════════════════════════

async def get_rating(
    db: AsyncSession,
    user_id: int,
    tea_sample_id: int,
) -> Optional[Rating]:
    """Получить оценку пользователя для образца."""
    result = await db.execute(
        select(Rating).where(
            Rating.user_id == user_id,
            Rating.tea_sample_id == tea_sample_id,
        )
    )
    return result.scalar_one_or_none()


async def upsert_rating(
    db: AsyncSession,
    user_id: int,
    tea_sample_id: int,
    data: dict[str, int],
    comment: Optional[str] = None,
) -> Rating:
    """Создать оценку или заменить существующую для пары (user, sample)."""
    rating = await get_rating(db, user_id, tea_sample_id)

    if rating:
        rating.data = dict(data)
        rating.comment = comment
        await db.commit()
    else:
        rating = Rating(
            user_id=user_id,
            tea_sample_id=tea_sample_id,
            data=dict(data),
            comment=comment,
        )
        db.add(rating)
        try:
            await db.commit()
        except IntegrityError:
            # Параллельный запрос успел вставить оценку первым
            await db.rollback()
            rating = await get_rating(db, user_id, tea_sample_id)
            rating.data = dict(data)
            rating.comment = comment
            await db.commit()

    await db.refresh(rating)
    return rating


async def get_tasting_ratings(db: AsyncSession, tasting_id: int) -> list[Rating]:
    """Все оценки дегустации с пользователями и образцами."""
    result = await db.execute(
        select(Rating)
        .join(TeaSample, Rating.tea_sample_id == TeaSample.id)
        .options(selectinload(Rating.user), selectinload(Rating.tea_sample))
        .where(TeaSample.tasting_id == tasting_id)
        .order_by(TeaSample.position, Rating.user_id)
        .execution_options(populate_existing=True)
    )
    return list(result.scalars().all())


async def get_user_tasting_ratings(
    db: AsyncSession,
    user_id: int,
    tasting_id: int,
) -> list[Rating]:
    """Оценки одного пользователя в рамках дегустации."""
    result = await db.execute(
        select(Rating)
        .join(TeaSample, Rating.tea_sample_id == TeaSample.id)
        .options(selectinload(Rating.tea_sample))
        .where(
            TeaSample.tasting_id == tasting_id,
            Rating.user_id == user_id,
        )
        .order_by(TeaSample.position)
        .execution_options(populate_existing=True)
    )
    return list(result.scalars().all())


# ═══════════════════════════════════════════════════════════════════
# AuthLink CRUD
# ═══════════════════════════════════════════════════════════════════

async def create_auth_link(
    db: AsyncSession,
    token: str,
    user_id: int,
    purpose: AuthLinkPurpose,
    context: dict[str, Any],
    expires_at: datetime,
) -> AuthLink:
    """Сохранить новую ссылку доступа."""
    link = AuthLink(
        token=token,
        user_id=user_id,
        purpose=purpose,
        context=context,
        expires_at=expires_at,
    )

    db.add(link)
    await db.commit()
    await db.refresh(link)

    logger.info(f"Created auth link: {link}")
    return link


async def get_auth_link_by_token(db: AsyncSession, token: str) -> Optional[AuthLink]:
    """Получить ссылку по токену (вместе с пользователем)."""
    result = await db.execute(
        select(AuthLink)
        .options(selectinload(AuthLink.user))
        .where(AuthLink.token == token)
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def mark_auth_link_used(
    db: AsyncSession,
    token: str,
    now: datetime,
) -> bool:
    """
    Атомарно пометить ссылку использованной.

    UPDATE ... WHERE used_at IS NULL AND expires_at > now: из двух
    параллельных запросов строку обновит только один.

    Returns:
        True если эта транзакция пометила ссылку
    """
    result = await db.execute(
        update(AuthLink)
        .where(
            AuthLink.token == token,
            AuthLink.used_at.is_(None),
            AuthLink.expires_at > now,
        )
        .values(used_at=now)
        .execution_options(synchronize_session=False)
    )
    await db.commit()
    return result.rowcount == 1


async def delete_expired_auth_links(db: AsyncSession, cutoff: datetime) -> int:
    """Удалить ссылки, истёкшие раньше cutoff. Возвращает количество удалённых."""
    result = await db.execute(
        delete(AuthLink)
        .where(AuthLink.expires_at < cutoff)
        .execution_options(synchronize_session=False)
    )
    await db.commit()
    return result.rowcount or 0
