# Pydantic schemas for registration and auth links

from typing import Any, Optional

from pydantic import BaseModel, Field

from database.models import AuthLinkPurpose


class TelegramRegisterRequest(BaseModel):
    """Данные пользователя Telegram, присылаемые ботом."""

    telegram_id: int = Field(..., description="ID пользователя в Telegram")
    username: Optional[str] = Field(default=None, max_length=100)
    full_name: Optional[str] = Field(default=None, max_length=255)


class StatusResponse(BaseModel):
    status: str = "ok"


class AuthLinkRequest(BaseModel):
    """Запрос ссылки доступа от бота."""

    telegram_id: int
    purpose: AuthLinkPurpose
    context: dict[str, Any] = Field(
        default_factory=dict,
        description="Контекст страницы: tasting_id, tea_sample_id, ...",
    )


class AuthLinkResponse(BaseModel):
    url: str


class LinkUser(BaseModel):
    id: int
    name: str


class ResolveResponse(BaseModel):
    """Результат разрешения токена."""

    user: LinkUser
    purpose: AuthLinkPurpose
    context: dict[str, Any] = Field(default_factory=dict)
