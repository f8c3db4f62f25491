# API authentication dependencies

import secrets
from typing import Optional

from fastapi import Depends, Header, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import BOT_API_SECRET
from core import ResolvedLink, authorize_link
from database import AuthLinkPurpose, get_db


def _bearer_token(authorization: Optional[str]) -> Optional[str]:
    """Достать токен из заголовка 'Authorization: Bearer <token>'."""
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token:
        return None
    return token.strip()


def require_bot_secret(x_bot_secret: Optional[str] = Header(default=None)) -> None:
    """
    Dependency: запрос пришёл от нашего бота.
    Если BOT_API_SECRET не задан, проверка отключена (локальная разработка).
    """
    if not BOT_API_SECRET:
        return

    if not x_bot_secret or not secrets.compare_digest(x_bot_secret, BOT_API_SECRET):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Неверный секрет бота",
        )


async def require_admin(
    authorization: Optional[str] = Header(default=None),
    db: AsyncSession = Depends(get_db),
) -> ResolvedLink:
    """Dependency: действующая ссылка admin_panel администратора."""
    return await authorize_link(db, _bearer_token(authorization), AuthLinkPurpose.ADMIN_PANEL)


async def require_rating_link(
    authorization: Optional[str] = Header(default=None),
    db: AsyncSession = Depends(get_db),
) -> ResolvedLink:
    """Dependency: действующая ссылка rating_page."""
    return await authorize_link(db, _bearer_token(authorization), AuthLinkPurpose.RATING_PAGE)


async def require_result_link(
    authorization: Optional[str] = Header(default=None),
    db: AsyncSession = Depends(get_db),
) -> ResolvedLink:
    """Dependency: действующая ссылка result_page."""
    return await authorize_link(db, _bearer_token(authorization), AuthLinkPurpose.RESULT_PAGE)
