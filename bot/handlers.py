# Bot handlers

import logging
from typing import Any, Optional

from aiogram import Router, types, F
from aiogram.filters import Command, CommandStart

from api_client import ApiClientError, get_active_tastings, register_user, request_link
from .keyboards import (
    main_menu_keyboard,
    tastings_keyboard,
    open_link_keyboard,
    TastingCallback,
    ACTION_RATE,
    ACTION_RESULTS,
    BTN_RATE,
    BTN_RESULTS,
    BTN_ADMIN,
    BTN_HELP,
)

logger = logging.getLogger(__name__)

router = Router()

HELP_TEXT = (
    "🍵 <b>Коллективная дегустация чая</b>\n\n"
    f"{BTN_RATE} — выбрать дегустацию и оценить образцы\n"
    f"{BTN_RESULTS} — ваш вкусовой профиль и общие итоги\n"
    f"{BTN_ADMIN} — управление дегустациями (для организаторов)\n\n"
    "Ссылки действуют ограниченное время. Если ссылка устарела, "
    "просто запросите новую."
)

# Тексты ошибок бэкенда для пользователя
ERROR_TEXTS = {
    "FORBIDDEN": "⛔ У вас нет прав на это действие.",
    "NOT_FOUND": "⚠️ Не удалось найти данные. Отправьте /start и попробуйте снова.",
}

PURPOSE_BY_ACTION = {
    ACTION_RATE: "rating_page",
    ACTION_RESULTS: "result_page",
}

BUTTON_TEXT_BY_PURPOSE = {
    "rating_page": "🍵 Открыть форму оценки",
    "result_page": "📊 Открыть результаты",
    "admin_panel": "⚙️ Открыть админ-панель",
}


def _full_name(user: types.User) -> Optional[str]:
    return user.full_name or None


async def _register(user: types.User) -> None:
    await register_user(
        telegram_id=user.id,
        username=user.username,
        full_name=_full_name(user),
    )


async def _send_link(
    message: types.Message,
    user: types.User,
    purpose: str,
    context: Optional[dict[str, Any]] = None,
) -> None:
    """Запросить ссылку у бэкенда и отправить её пользователю."""
    try:
        try:
            url = await request_link(user.id, purpose, context)
        except ApiClientError as e:
            if e.code != "NOT_FOUND":
                raise
            # Пользователь ещё не зарегистрирован на бэкенде
            await _register(user)
            url = await request_link(user.id, purpose, context)

    except ApiClientError as e:
        logger.warning(f"Link request failed for {user.id}: {e.status_code} {e.code}")
        await message.answer(ERROR_TEXTS.get(e.code, "⚠️ Сервис временно недоступен, попробуйте позже."))
        return

    button_text = BUTTON_TEXT_BY_PURPOSE[purpose]

    # Telegram принимает в URL-кнопках только публичные https-адреса
    if url.startswith("https://"):
        await message.answer(
            "Ссылка готова 👇\n<i>Она действует ограниченное время.</i>",
            reply_markup=open_link_keyboard(url, button_text),
        )
    else:
        await message.answer(f"{button_text}:\n{url}")


async def _choose_tasting(message: types.Message, user: types.User, action: str) -> None:
    """Предложить выбор дегустации (или сразу выдать ссылку, если она одна)."""
    try:
        tastings = await get_active_tastings()
    except ApiClientError as e:
        logger.warning(f"Failed to load tastings: {e}")
        await message.answer("⚠️ Сервис временно недоступен, попробуйте позже.")
        return

    if not tastings:
        await message.answer("Сейчас нет активных дегустаций 🍂")
        return

    if len(tastings) == 1:
        await _send_link(message, user, PURPOSE_BY_ACTION[action], {"tasting_id": tastings[0]["id"]})
        return

    await message.answer(
        "Выберите дегустацию:",
        reply_markup=tastings_keyboard(tastings, action),
    )


# ═══════════════════════════════════════════════════════════════════
# Команды
# ═══════════════════════════════════════════════════════════════════

@router.message(CommandStart())
async def cmd_start(message: types.Message) -> None:
    """Регистрация (или обновление данных) и главное меню."""
    try:
        await _register(message.from_user)
    except ApiClientError as e:
        logger.error(f"Registration failed for {message.from_user.id}: {e}")
        await message.answer("⚠️ Не удалось связаться с сервером. Попробуйте позже.")
        return

    await message.answer(
        f"👋 Здравствуйте, <b>{message.from_user.first_name}</b>!\n\n" + HELP_TEXT,
        reply_markup=main_menu_keyboard(),
    )


@router.message(Command("help"))
@router.message(F.text == BTN_HELP)
async def cmd_help(message: types.Message) -> None:
    await message.answer(HELP_TEXT, reply_markup=main_menu_keyboard())


# ═══════════════════════════════════════════════════════════════════
# Главное меню
# ═══════════════════════════════════════════════════════════════════

@router.message(Command("rate"))
@router.message(F.text == BTN_RATE)
async def menu_rate(message: types.Message) -> None:
    await _choose_tasting(message, message.from_user, ACTION_RATE)


@router.message(Command("results"))
@router.message(F.text == BTN_RESULTS)
async def menu_results(message: types.Message) -> None:
    await _choose_tasting(message, message.from_user, ACTION_RESULTS)


@router.message(Command("admin"))
@router.message(F.text == BTN_ADMIN)
async def menu_admin(message: types.Message) -> None:
    await _send_link(message, message.from_user, "admin_panel")


@router.callback_query(TastingCallback.filter())
async def tasting_chosen(callback: types.CallbackQuery, callback_data: TastingCallback) -> None:
    """Пользователь выбрал дегустацию в inline-клавиатуре."""
    await callback.answer()
    await _send_link(
        callback.message,
        callback.from_user,
        PURPOSE_BY_ACTION[callback_data.action],
        {"tasting_id": callback_data.tasting_id},
    )


@router.message()
async def fallback(message: types.Message) -> None:
    """Любой другой текст: показать меню."""
    await message.answer(
        "Не понял команду 🤔 Выберите действие в меню.",
        reply_markup=main_menu_keyboard(),
    )
