# Utils module

from .retry import api_retry
from .metrics import (
    telegram_messages_total,
    api_requests_total,
    http_requests_total,
    auth_links_issued,
    auth_links_resolved,
    ratings_submitted,
    errors_total,
    message_processing_duration,
    api_request_duration,
    http_request_duration,
    init_app_info,
)

__all__ = [
    'api_retry',
    'telegram_messages_total',
    'api_requests_total',
    'http_requests_total',
    'auth_links_issued',
    'auth_links_resolved',
    'ratings_submitted',
    'errors_total',
    'message_processing_duration',
    'api_request_duration',
    'http_request_duration',
    'init_app_info',
]
