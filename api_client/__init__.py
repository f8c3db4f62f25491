# Backend API client module

from .client import ApiClientError, register_user, request_link, get_active_tastings

__all__ = [
    "ApiClientError",
    "register_user",
    "request_link",
    "get_active_tastings",
]
