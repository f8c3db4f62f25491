# Database models

import enum
from datetime import datetime
from typing import Any, Optional

from sqlalchemy import (
    JSON,
    BigInteger,
    Boolean,
    CheckConstraint,
    DateTime,
    Enum,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship

# JSONB в PostgreSQL (для BI-запросов), обычный JSON в остальных СУБД
JSONType = JSON().with_variant(JSONB(), "postgresql")


class Base(DeclarativeBase):
    """Базовый класс для всех моделей."""
    pass


class AuthLinkPurpose(str, enum.Enum):
    """Для какой страницы выдана ссылка."""
    RATING_PAGE = "rating_page"    # Форма оценки образцов
    RESULT_PAGE = "result_page"    # Результаты дегустации
    ADMIN_PANEL = "admin_panel"    # Админка (только для is_admin)


class User(Base):
    """Участник дегустаций, привязанный к аккаунту Telegram."""

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(primary_key=True)

    # Telegram данные
    telegram_id: Mapped[int] = mapped_column(BigInteger, unique=True, index=True)
    username: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    full_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    is_admin: Mapped[bool] = mapped_column(Boolean, default=False)

    # Временные метки
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
    )

    ratings: Mapped[list["Rating"]] = relationship(back_populates="user")
    auth_links: Mapped[list["AuthLink"]] = relationship(
        back_populates="user",
        cascade="all, delete-orphan",
    )

    @property
    def display_name(self) -> str:
        """Имя для интерфейса: ФИО, затем @username, затем Telegram ID."""
        if self.full_name:
            return self.full_name
        if self.username:
            return f"@{self.username}"
        return str(self.telegram_id)

    def __repr__(self) -> str:
        return f"<User {self.id}: tg={self.telegram_id} admin={self.is_admin}>"


class Tasting(Base):
    """Дегустация: событие с набором образцов и осей оценки."""

    __tablename__ = "tastings"

    id: Mapped[int] = mapped_column(primary_key=True)

    title: Mapped[str] = mapped_column(String(255))
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    scheduled_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, index=True)

    created_by_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
    )

    created_by: Mapped[Optional["User"]] = relationship()
    samples: Mapped[list["TeaSample"]] = relationship(
        back_populates="tasting",
        cascade="all, delete-orphan",
        order_by="TeaSample.position",
    )
    dimensions: Mapped[list["RatingDimension"]] = relationship(
        back_populates="tasting",
        cascade="all, delete-orphan",
        order_by="RatingDimension.position",
    )

    def __repr__(self) -> str:
        return f"<Tasting {self.id}: {self.title}>"


class TeaSample(Base):
    """Образец чая внутри дегустации."""

    __tablename__ = "tea_samples"
    __table_args__ = (
        UniqueConstraint("tasting_id", "position", name="uq_tea_samples_tasting_position"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)

    tasting_id: Mapped[int] = mapped_column(
        ForeignKey("tastings.id", ondelete="CASCADE"),
        index=True,
    )
    # Порядковый номер образца в дегустации
    position: Mapped[int] = mapped_column(Integer)

    name: Mapped[str] = mapped_column(String(255))
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
    )

    tasting: Mapped["Tasting"] = relationship(back_populates="samples")
    ratings: Mapped[list["Rating"]] = relationship(
        back_populates="tea_sample",
        cascade="all, delete-orphan",
    )

    def __repr__(self) -> str:
        return f"<TeaSample {self.id}: #{self.position} {self.name}>"


class RatingDimension(Base):
    """Ось оценки (аромат, сладость, ...) с допустимым диапазоном значений."""

    __tablename__ = "rating_dimensions"
    __table_args__ = (
        UniqueConstraint("tasting_id", "code", name="uq_rating_dimensions_tasting_code"),
        CheckConstraint("min_value < max_value", name="ck_rating_dimensions_range"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)

    tasting_id: Mapped[int] = mapped_column(
        ForeignKey("tastings.id", ondelete="CASCADE"),
        index=True,
    )

    # Машинное имя: ключ в ratings.data
    code: Mapped[str] = mapped_column(String(50))
    name: Mapped[str] = mapped_column(String(100))

    min_value: Mapped[int] = mapped_column(Integer, default=0)
    max_value: Mapped[int] = mapped_column(Integer, default=10)

    position: Mapped[int] = mapped_column(Integer, default=0)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)

    tasting: Mapped["Tasting"] = relationship(back_populates="dimensions")

    def __repr__(self) -> str:
        return f"<RatingDimension {self.code} [{self.min_value}..{self.max_value}]>"


class Rating(Base):
    """Оценка образца участником: {код оси: значение}."""

    __tablename__ = "ratings"
    __table_args__ = (
        UniqueConstraint("user_id", "tea_sample_id", name="uq_ratings_user_sample"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)

    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        index=True,
    )
    tea_sample_id: Mapped[int] = mapped_column(
        ForeignKey("tea_samples.id", ondelete="CASCADE"),
        index=True,
    )

    data: Mapped[dict[str, Any]] = mapped_column(JSONType, default=dict)
    comment: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
    )

    user: Mapped["User"] = relationship(back_populates="ratings")
    tea_sample: Mapped["TeaSample"] = relationship(back_populates="ratings")

    def __repr__(self) -> str:
        return f"<Rating user={self.user_id} sample={self.tea_sample_id}>"


class AuthLink(Base):
    """
    Ссылка доступа к странице фронтенда.
    Непрозрачный токен с ограниченным сроком жизни, привязанный к пользователю и цели.
    """

    __tablename__ = "auth_links"

    id: Mapped[int] = mapped_column(primary_key=True)

    token: Mapped[str] = mapped_column(String(64), unique=True, index=True)

    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        index=True,
    )
    purpose: Mapped[AuthLinkPurpose] = mapped_column(Enum(AuthLinkPurpose))

    # Контекст страницы: tasting_id, tea_sample_id и т.д.
    context: Mapped[dict[str, Any]] = mapped_column(JSONType, default=dict)

    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), index=True)
    # NULL = ещё не использована
    used_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
    )

    user: Mapped["User"] = relationship(back_populates="auth_links")

    def __repr__(self) -> str:
        return f"<AuthLink {self.id}: {self.purpose.value} user={self.user_id}>"
