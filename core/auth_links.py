# Auth-link lifecycle: issue, resolve, authorize, purge

import secrets
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Optional
from urllib.parse import urlencode

from sqlalchemy.ext.asyncio import AsyncSession

from config.logging import get_logger
from config.settings import (
    APP_BASE_URL,
    AUTH_LINK_ADMIN_TTL_MINUTES,
    AUTH_LINK_TTL_MINUTES,
    SINGLE_USE_PURPOSES,
)
from database import (
    AuthLink,
    AuthLinkPurpose,
    User,
    create_auth_link,
    delete_expired_auth_links,
    get_auth_link_by_token,
    get_user_by_telegram_id,
    mark_auth_link_used,
)
from utils.metrics import auth_links_issued, auth_links_resolved

from .errors import (
    AlreadyUsedError,
    AuthorizationError,
    ExpiredError,
    NotFoundError,
    ValidationError,
)

logger = get_logger(__name__)

# Страница фронтенда для каждой цели ссылки
PAGE_PATHS = {
    AuthLinkPurpose.RATING_PAGE: "/rate",
    AuthLinkPurpose.RESULT_PAGE: "/results",
    AuthLinkPurpose.ADMIN_PANEL: "/admin",
}

DEFAULT_TTL = timedelta(minutes=AUTH_LINK_TTL_MINUTES)

# Срок жизни по умолчанию, если он отличается от DEFAULT_TTL
PURPOSE_TTL = {
    AuthLinkPurpose.ADMIN_PANEL: timedelta(minutes=AUTH_LINK_ADMIN_TTL_MINUTES),
}


@dataclass
class ResolvedLink:
    """Результат разрешения ссылки."""
    user: User
    purpose: AuthLinkPurpose
    context: dict[str, Any] = field(default_factory=dict)
    expires_at: Optional[datetime] = None


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _as_utc(value: datetime) -> datetime:
    # SQLite возвращает naive datetime; всё хранится в UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def is_single_use(purpose: AuthLinkPurpose) -> bool:
    """Проверяется ли used_at для ссылок с этой целью."""
    return SINGLE_USE_PURPOSES.get(purpose.value, False)


def build_link_url(link: AuthLink, base_url: str = APP_BASE_URL) -> str:
    """URL страницы фронтенда с токеном ссылки."""
    path = PAGE_PATHS[link.purpose]
    return f"{base_url.rstrip('/')}{path}?{urlencode({'token': link.token})}"


async def issue_link(
    db: AsyncSession,
    telegram_id: int,
    purpose: AuthLinkPurpose,
    context: Optional[dict[str, Any]] = None,
    ttl: Optional[timedelta] = None,
    now: Optional[datetime] = None,
) -> AuthLink:
    """
    Выдать ссылку доступа пользователю.

    Raises:
        NotFoundError: пользователь с таким telegram_id не зарегистрирован
        AuthorizationError: admin_panel запрошена не админом
        ValidationError: context не является объектом
    """
    if context is None:
        context = {}
    if not isinstance(context, dict):
        raise ValidationError("context должен быть объектом")

    user = await get_user_by_telegram_id(db, telegram_id)
    if not user:
        raise NotFoundError(
            "Пользователь не зарегистрирован",
            details={"telegram_id": telegram_id},
        )

    if purpose == AuthLinkPurpose.ADMIN_PANEL and not user.is_admin:
        logger.warning("admin_link_denied", user_id=user.id, telegram_id=telegram_id)
        raise AuthorizationError("Админ-панель доступна только администраторам")

    issued_at = now or utcnow()
    link = await create_auth_link(
        db,
        token=secrets.token_urlsafe(32),
        user_id=user.id,
        purpose=purpose,
        context=context,
        expires_at=issued_at + (ttl or PURPOSE_TTL.get(purpose, DEFAULT_TTL)),
    )

    auth_links_issued.labels(purpose=purpose.value).inc()
    logger.info("link_issued", user_id=user.id, purpose=purpose.value, link_id=link.id)
    return link


def _check_link(link: Optional[AuthLink], now: datetime) -> AuthLink:
    if not link:
        raise NotFoundError("Ссылка не найдена")
    if now >= _as_utc(link.expires_at):
        raise ExpiredError(
            "Срок действия ссылки истёк",
            details={"expires_at": _as_utc(link.expires_at).isoformat()},
        )
    return link


async def resolve_link(
    db: AsyncSession,
    token: str,
    now: Optional[datetime] = None,
) -> ResolvedLink:
    """
    Разрешить ссылку: вернуть пользователя, цель и контекст.

    Для одноразовых целей used_at проставляется условным UPDATE, поэтому
    из параллельных запросов с одним токеном успешен только один.

    Raises:
        NotFoundError, ExpiredError, AlreadyUsedError
    """
    now = now or utcnow()

    try:
        link = _check_link(await get_auth_link_by_token(db, token), now)

        if is_single_use(link.purpose):
            if link.used_at is not None:
                raise AlreadyUsedError("Ссылка уже использована")

            if not await mark_auth_link_used(db, token, now):
                # Строку успел обновить другой запрос (или ссылка пропала)
                link = _check_link(await get_auth_link_by_token(db, token), now)
                raise AlreadyUsedError("Ссылка уже использована")

    except (NotFoundError, ExpiredError, AlreadyUsedError) as e:
        auth_links_resolved.labels(result=e.code.lower()).inc()
        logger.info("link_resolve_failed", reason=e.code)
        raise

    auth_links_resolved.labels(result="ok").inc()
    logger.info("link_resolved", user_id=link.user_id, purpose=link.purpose.value)

    return ResolvedLink(
        user=link.user,
        purpose=link.purpose,
        context=dict(link.context or {}),
        expires_at=_as_utc(link.expires_at),
    )


async def authorize_link(
    db: AsyncSession,
    token: Optional[str],
    purpose: AuthLinkPurpose,
    now: Optional[datetime] = None,
) -> ResolvedLink:
    """
    Проверить токен для API-вызова со страницы (ссылка не расходуется).

    Raises:
        AuthorizationError: токена нет, цель не совпадает или пользователь не админ
        NotFoundError, ExpiredError
    """
    if not token:
        raise AuthorizationError("Требуется токен доступа")

    link = _check_link(await get_auth_link_by_token(db, token), now or utcnow())

    if link.purpose != purpose:
        raise AuthorizationError(
            "Токен выдан для другой страницы",
            details={"expected": purpose.value, "actual": link.purpose.value},
        )

    if purpose == AuthLinkPurpose.ADMIN_PANEL and not link.user.is_admin:
        raise AuthorizationError("Админ-панель доступна только администраторам")

    return ResolvedLink(
        user=link.user,
        purpose=link.purpose,
        context=dict(link.context or {}),
        expires_at=_as_utc(link.expires_at),
    )


async def purge_expired_links(
    db: AsyncSession,
    older_than: timedelta,
    now: Optional[datetime] = None,
) -> int:
    """Физически удалить ссылки, истёкшие больше older_than назад."""
    cutoff = (now or utcnow()) - older_than
    deleted = await delete_expired_auth_links(db, cutoff)
    if deleted:
        logger.info("expired_links_purged", count=deleted)
    return deleted
