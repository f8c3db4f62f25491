# Domain errors

from typing import Any, Optional


class TastingError(Exception):
    """
    Базовая ошибка предметной области.
    Каждый подкласс соответствует своему HTTP-статусу.
    """

    status_code: int = 500
    code: str = "TASTING_ERROR"

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Тело HTTP-ответа."""
        result = {
            "detail": self.message,
            "code": self.code,
        }
        if self.details:
            result["details"] = self.details
        return result


class NotFoundError(TastingError):
    """Неизвестный идентификатор или токен."""
    status_code = 404
    code = "NOT_FOUND"


class ExpiredError(TastingError):
    """Срок действия ссылки истёк."""
    status_code = 410
    code = "LINK_EXPIRED"


class AlreadyUsedError(TastingError):
    """Одноразовая ссылка уже использована."""
    status_code = 409
    code = "LINK_ALREADY_USED"


class AuthorizationError(TastingError):
    """Недостаточно прав (например, не-админ запрашивает админку)."""
    status_code = 403
    code = "FORBIDDEN"


class ValidationError(TastingError):
    """Некорректные данные запроса."""
    status_code = 422
    code = "VALIDATION_ERROR"
