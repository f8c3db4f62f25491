# Pydantic schemas for API validation
from .auth import (
    TelegramRegisterRequest,
    StatusResponse,
    AuthLinkRequest,
    AuthLinkResponse,
    LinkUser,
    ResolveResponse,
)
from .tastings import (
    TeaSampleCreate,
    TeaSampleUpdate,
    TeaSampleOut,
    RatingDimensionCreate,
    RatingDimensionUpdate,
    RatingDimensionOut,
    TastingCreate,
    TastingUpdate,
    TastingOut,
    TastingDetail,
    RatingCreate,
    RatingOut,
)

__all__ = [
    # Auth
    "TelegramRegisterRequest",
    "StatusResponse",
    "AuthLinkRequest",
    "AuthLinkResponse",
    "LinkUser",
    "ResolveResponse",
    # Tastings
    "TeaSampleCreate",
    "TeaSampleUpdate",
    "TeaSampleOut",
    "RatingDimensionCreate",
    "RatingDimensionUpdate",
    "RatingDimensionOut",
    "TastingCreate",
    "TastingUpdate",
    "TastingOut",
    "TastingDetail",
    "RatingCreate",
    "RatingOut",
]
