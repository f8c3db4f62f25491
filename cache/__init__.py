# Cache module
from .redis_cache import (
    init_cache,
    close_cache,
    get_cache,
    set_cache,
    delete_cache,
    cache_tasting_summary,
    get_cached_tasting_summary,
    get_tasting_summary_version,
    invalidate_tasting_summary,
    is_cache_available,
)

__all__ = [
    "init_cache",
    "close_cache",
    "get_cache",
    "set_cache",
    "delete_cache",
    "cache_tasting_summary",
    "get_cached_tasting_summary",
    "get_tasting_summary_version",
    "invalidate_tasting_summary",
    "is_cache_available",
]
