# Bot keyboards

from aiogram.filters.callback_data import CallbackData
from aiogram.types import (
    InlineKeyboardButton,
    InlineKeyboardMarkup,
    KeyboardButton,
    ReplyKeyboardMarkup,
)

# Константы для текста кнопок (используются и в handlers)
BTN_RATE = "🍵 Оценить чай"
BTN_RESULTS = "📊 Мои результаты"
BTN_ADMIN = "⚙️ Админ-панель"
BTN_HELP = "❓ Помощь"

# Действия при выборе дегустации
ACTION_RATE = "rate"
ACTION_RESULTS = "results"


class TastingCallback(CallbackData, prefix="tasting"):
    """Выбор дегустации в inline-клавиатуре."""
    action: str
    tasting_id: int


def main_menu_keyboard() -> ReplyKeyboardMarkup:
    """Главное меню бота."""
    keyboard = ReplyKeyboardMarkup(
        keyboard=[
            [KeyboardButton(text=BTN_RATE), KeyboardButton(text=BTN_RESULTS)],
            [KeyboardButton(text=BTN_ADMIN), KeyboardButton(text=BTN_HELP)],
        ],
        resize_keyboard=True,
        input_field_placeholder="Выберите действие",
    )
    return keyboard


def tastings_keyboard(tastings: list[dict], action: str) -> InlineKeyboardMarkup:
    """
    Список дегустаций для выбора.

    Args:
        tastings: Дегустации из API (id, title)
        action: ACTION_RATE или ACTION_RESULTS
    """
    rows = [
        [
            InlineKeyboardButton(
                text=tasting["title"],
                callback_data=TastingCallback(action=action, tasting_id=tasting["id"]).pack(),
            )
        ]
        for tasting in tastings
    ]
    return InlineKeyboardMarkup(inline_keyboard=rows)


def open_link_keyboard(url: str, text: str) -> InlineKeyboardMarkup:
    """Кнопка со ссылкой на страницу фронтенда."""
    return InlineKeyboardMarkup(
        inline_keyboard=[[InlineKeyboardButton(text=text, url=url)]]
    )
