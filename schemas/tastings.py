# Pydantic schemas for tastings, samples, dimensions and ratings

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


# ═══════════════════════════════════════════════════════════════════
# Образцы
# ═══════════════════════════════════════════════════════════════════

class TeaSampleCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    position: Optional[int] = Field(default=None, ge=1, description="Порядковый номер (по умолчанию: в конец)")


class TeaSampleUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = None
    position: Optional[int] = Field(default=None, ge=1)


class TeaSampleOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    tasting_id: int
    position: int
    name: str
    description: Optional[str] = None


# ═══════════════════════════════════════════════════════════════════
# Оси оценки
# ═══════════════════════════════════════════════════════════════════

class RatingDimensionCreate(BaseModel):
    code: str = Field(..., min_length=1, max_length=50, pattern=r"^[a-z][a-z0-9_]*$")
    name: str = Field(..., min_length=1, max_length=100)
    min_value: int = 0
    max_value: int = 10
    position: Optional[int] = Field(default=None, ge=0)

    @model_validator(mode="after")
    def check_range(self):
        """Диапазон оси не может быть пустым."""
        if self.min_value >= self.max_value:
            raise ValueError("min_value должен быть меньше max_value")
        return self


class RatingDimensionUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    min_value: Optional[int] = None
    max_value: Optional[int] = None
    position: Optional[int] = Field(default=None, ge=0)
    is_active: Optional[bool] = None


class RatingDimensionOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    tasting_id: int
    code: str
    name: str
    min_value: int
    max_value: int
    position: int
    is_active: bool


# ═══════════════════════════════════════════════════════════════════
# Дегустации
# ═══════════════════════════════════════════════════════════════════

class TastingCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    scheduled_at: Optional[datetime] = None


class TastingUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = None
    scheduled_at: Optional[datetime] = None
    is_active: Optional[bool] = None


class TastingOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    description: Optional[str] = None
    scheduled_at: Optional[datetime] = None
    is_active: bool
    created_by_id: Optional[int] = None


class TastingDetail(TastingOut):
    """Дегустация с образцами и осями оценки."""

    samples: list[TeaSampleOut] = Field(default_factory=list)
    dimensions: list[RatingDimensionOut] = Field(default_factory=list)


# ═══════════════════════════════════════════════════════════════════
# Оценки
# ═══════════════════════════════════════════════════════════════════

class RatingCreate(BaseModel):
    """
    Оценка образца. data: {код оси: значение}; проверка кодов и
    диапазонов выполняется по осям дегустации при записи.
    """

    user_id: int
    tea_sample_id: int
    data: dict[str, Any]
    comment: Optional[str] = Field(default=None, max_length=2000)


class RatingOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    tea_sample_id: int
    data: dict[str, int]
    comment: Optional[str] = None
