# Prometheus metrics for monitoring

from prometheus_client import Counter, Histogram, Info, generate_latest, CONTENT_TYPE_LATEST

# ═══════════════════════════════════════════════════════════════════
# Counters - счётчики событий
# ═══════════════════════════════════════════════════════════════════

# Телеграм сообщения
telegram_messages_total = Counter(
    'telegram_messages_total',
    'Total Telegram messages received',
    ['message_type']  # text, command, callback
)

# Запросы бота к бэкенду
api_requests_total = Counter(
    'api_requests_total',
    'Total requests from bot to backend API',
    ['endpoint', 'status']  # endpoint, success/error
)

# HTTP запросы к бэкенду
http_requests_total = Counter(
    'http_requests_total',
    'Total HTTP requests handled by backend',
    ['method', 'path', 'status_code']
)

# Ссылки доступа
auth_links_issued = Counter(
    'auth_links_issued_total',
    'Total auth links issued',
    ['purpose']  # rating_page, result_page, admin_panel
)

auth_links_resolved = Counter(
    'auth_links_resolved_total',
    'Total auth link resolutions',
    ['result']  # ok, not_found, link_expired, link_already_used
)

# Оценки
ratings_submitted = Counter(
    'ratings_submitted_total',
    'Total ratings submitted (including updates)'
)

# Ошибки
errors_total = Counter(
    'errors_total',
    'Total errors',
    ['type', 'module']  # handler_error/unhandled, module name
)

# ═══════════════════════════════════════════════════════════════════
# Histograms - распределение времени
# ═══════════════════════════════════════════════════════════════════

# Время обработки сообщений бота
message_processing_duration = Histogram(
    'message_processing_seconds',
    'Time spent processing messages',
    ['handler'],
    buckets=[0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0]
)

# Время запросов бота к бэкенду
api_request_duration = Histogram(
    'api_request_seconds',
    'Time spent on backend API requests from bot',
    ['endpoint'],
    buckets=[0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0]
)

# Время обработки HTTP запросов бэкендом
http_request_duration = Histogram(
    'http_request_seconds',
    'Time spent handling HTTP requests',
    ['method', 'path'],
    buckets=[0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5]
)

# ═══════════════════════════════════════════════════════════════════
# Info - метаданные
# ═══════════════════════════════════════════════════════════════════

app_info = Info(
    'tea_tasting',
    'Application information'
)


def init_app_info(version: str = "1.0.0"):
    """Инициализировать информацию о приложении."""
    app_info.info({
        'version': version,
        'name': 'tea-tasting',
    })


def get_metrics():
    """Получить все метрики в формате Prometheus."""
    return generate_latest()


def get_metrics_content_type():
    return CONTENT_TYPE_LATEST
