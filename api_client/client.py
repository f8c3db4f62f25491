# Backend API client used by the bot

import logging
import time
from typing import Any, Optional

import httpx

from config.settings import API_BASE_URL, BOT_API_SECRET
from utils.metrics import api_request_duration, api_requests_total
from utils.retry import api_retry

logger = logging.getLogger(__name__)

# Таймауты для запросов к бэкенду
TIMEOUT = httpx.Timeout(15.0, connect=5.0)


class ApiClientError(Exception):
    """Ошибка при обращении к бэкенду."""

    def __init__(self, message: str, status_code: Optional[int] = None, code: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.code = code


@api_retry(max_attempts=3)
async def _send(method: str, url: str, **kwargs: Any) -> httpx.Response:
    # Повторяются только сетевые ошибки (см. utils.retry)
    headers = {"X-Bot-Secret": BOT_API_SECRET} if BOT_API_SECRET else {}
    async with httpx.AsyncClient(timeout=TIMEOUT, headers=headers) as client:
        return await client.request(method, url, **kwargs)


async def call_api(
    method: str,
    endpoint: str,
    json: Optional[dict[str, Any]] = None,
    params: Optional[dict[str, Any]] = None,
) -> Any:
    """
    Вызвать эндпоинт бэкенда и вернуть JSON ответа.

    Raises:
        ApiClientError: сеть недоступна или бэкенд ответил ошибкой
    """
    url = f"{API_BASE_URL.rstrip('/')}{endpoint}"
    start_time = time.time()

    try:
        response = await _send(method, url, json=json, params=params)
    except httpx.RequestError as e:
        api_requests_total.labels(endpoint=endpoint, status="error").inc()
        logger.error(f"Backend network error on {endpoint}: {e}")
        raise ApiClientError(f"Ошибка сети: {e}") from e
    finally:
        api_request_duration.labels(endpoint=endpoint).observe(time.time() - start_time)

    if response.status_code >= 400:
        api_requests_total.labels(endpoint=endpoint, status="error").inc()
        try:
            body = response.json()
        except ValueError:
            body = {}
        detail = body.get("detail") if isinstance(body, dict) else None
        code = body.get("code") if isinstance(body, dict) else None
        logger.warning(f"Backend error on {endpoint}: {response.status_code} {code}")
        raise ApiClientError(
            detail if isinstance(detail, str) else f"HTTP {response.status_code}",
            status_code=response.status_code,
            code=code,
        )

    api_requests_total.labels(endpoint=endpoint, status="success").inc()
    return response.json()


async def register_user(
    telegram_id: int,
    username: Optional[str],
    full_name: Optional[str],
) -> None:
    """Зарегистрировать (или обновить) пользователя на бэкенде."""
    await call_api(
        "POST",
        "/api/telegram/register",
        json={
            "telegram_id": telegram_id,
            "username": username,
            "full_name": full_name,
        },
    )


async def request_link(
    telegram_id: int,
    purpose: str,
    context: Optional[dict[str, Any]] = None,
) -> str:
    """Получить ссылку на страницу фронтенда."""
    data = await call_api(
        "POST",
        "/api/auth/link",
        json={
            "telegram_id": telegram_id,
            "purpose": purpose,
            "context": context or {},
        },
    )
    return data["url"]


async def get_active_tastings() -> list[dict[str, Any]]:
    """Список активных дегустаций для выбора в боте."""
    return await call_api("GET", "/api/tastings", params={"active": "true"})
