# Core business logic

from .errors import (
    TastingError,
    NotFoundError,
    ExpiredError,
    AlreadyUsedError,
    AuthorizationError,
    ValidationError,
)
from .auth_links import (
    ResolvedLink,
    issue_link,
    resolve_link,
    authorize_link,
    build_link_url,
    is_single_use,
    purge_expired_links,
)
from .tastings import (
    get_tasting_or_404,
    edit_tasting,
    add_sample,
    edit_sample,
    add_dimension,
    edit_dimension,
)
from .ratings import validate_rating_data, submit_rating
from .aggregation import (
    average_by_dimension,
    describe_profile,
    build_tasting_summary,
    build_user_profile,
)
from .reports import get_tasting_summary, get_user_profile
from .export import export_tasting_csv

__all__ = [
    # Errors
    "TastingError",
    "NotFoundError",
    "ExpiredError",
    "AlreadyUsedError",
    "AuthorizationError",
    "ValidationError",
    # Auth links
    "ResolvedLink",
    "issue_link",
    "resolve_link",
    "authorize_link",
    "build_link_url",
    "is_single_use",
    "purge_expired_links",
    # Tastings
    "get_tasting_or_404",
    "edit_tasting",
    "add_sample",
    "edit_sample",
    "add_dimension",
    "edit_dimension",
    # Ratings
    "validate_rating_data",
    "submit_rating",
    # Aggregation
    "average_by_dimension",
    "describe_profile",
    "build_tasting_summary",
    "build_user_profile",
    # Reports
    "get_tasting_summary",
    "get_user_profile",
    # Export
    "export_tasting_csv",
]
