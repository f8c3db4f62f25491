# Database module

from .connection import get_db, init_db, close_db, engine, AsyncSessionLocal
from .models import (
    Base,
    User,
    Tasting,
    TeaSample,
    RatingDimension,
    Rating,
    AuthLink,
    AuthLinkPurpose,
)
from .crud import (
    get_user_by_telegram_id,
    get_user_by_id,
    upsert_user,
    create_tasting,
    get_tasting,
    get_all_tastings,
    update_tasting,
    get_next_sample_position,
    get_sample_by_position,
    create_sample,
    get_sample,
    update_sample,
    get_dimension_by_code,
    get_dimension,
    create_dimension,
    update_dimension,
    get_rating,
    upsert_rating,
    get_tasting_ratings,
    get_user_tasting_ratings,
    create_auth_link,
    get_auth_link_by_token,
    mark_auth_link_used,
    delete_expired_auth_links,
)

__all__ = [
    # Connection
    "get_db",
    "init_db",
    "close_db",
    "engine",
    "AsyncSessionLocal",
    # Models
    "Base",
    "User",
    "Tasting",
    "TeaSample",
    "RatingDimension",
    "Rating",
    "AuthLink",
    "AuthLinkPurpose",
    # CRUD
    "get_user_by_telegram_id",
    "get_user_by_id",
    "upsert_user",
    "create_tasting",
    "get_tasting",
    "get_all_tastings",
    "update_tasting",
    "get_next_sample_position",
    "get_sample_by_position",
    "create_sample",
    "get_sample",
    "update_sample",
    "get_dimension_by_code",
    "get_dimension",
    "create_dimension",
    "update_dimension",
    "get_rating",
    "upsert_rating",
    "get_tasting_ratings",
    "get_user_tasting_ratings",
    "create_auth_link",
    "get_auth_link_by_token",
    "mark_auth_link_used",
    "delete_expired_auth_links",
]
