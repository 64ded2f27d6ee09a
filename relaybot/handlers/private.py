"""Обработчики личных сообщений: проверка, фильтрация, пересылка в темы."""

from typing import Iterable

from aiogram import Bot, F, Router
from aiogram.exceptions import TelegramAPIError
from aiogram.filters import Command
from aiogram.types import Message
from loguru import logger

from relaybot.database.manager import DatabaseManager
from relaybot.handlers.admin.core import show_menu
from relaybot.handlers.admin.menus import render_menu
from relaybot.services.access_service import AccessService
from relaybot.services.admin_console_service import AdminConsoleService
from relaybot.services.config_service import ConfigService
from relaybot.services.filter_service import ContentFilterService
from relaybot.services.relay_service import RelayService
from relaybot.services.verification_service import (
    START_PROMPT_TEXT,
    VERIFIED_TEXT,
    WRONG_ANSWER_TEXT,
    VerificationService,
)
from relaybot.states.admin_states import Idle, MalformedAdminState
from relaybot.states.verification import UserState


router = Router(name="private")
router.message.filter(F.chat.type == "private")
router.edited_message.filter(F.chat.type == "private")

MALFORMED_STATE_TEXT = "⚠️ Состояние ввода повреждено и сброшено. Откройте меню заново командой /start."


async def send_texts(bot: Bot, chat_id: int, texts: Iterable[str]) -> None:
    """Отправляет тексты как есть, без HTML-разметки."""
    for text in texts:
        try:
            await bot.send_message(chat_id=chat_id, text=text, parse_mode=None)
        except TelegramAPIError as e:
            logger.error(f"❌ Не удалось отправить сообщение пользователю {chat_id}: {e}")


def is_cancel_command(text: str) -> bool:
    parts = (text or "").strip().split()
    return bool(parts) and parts[0].split("@")[0].lower() == "/cancel"


@router.message(Command("start", "help"))
async def start_command(
    message: Message,
    bot: Bot,
    db_manager: DatabaseManager,
    access_service: AccessService,
    config_service: ConfigService,
    console_service: AdminConsoleService,
    verification_service: VerificationService,
):
    """
    /start и /help: главный администратор получает консоль настроек,
    остальные - приветствие и контрольный вопрос.
    """
    user_id = str(message.from_user.id)
    user = await db_manager.users.get_or_create(user_id)
    if user.is_blocked:
        return

    if access_service.is_primary_admin(user_id):
        await verification_service.mark_verified(user)
        await console_service.reset(user_id)
        text, keyboard = await render_menu("root", config_service)
        await show_menu(bot, message.chat.id, text, keyboard)
        return

    if await access_service.is_authorized_admin(user_id):
        await verification_service.mark_verified(user)

    await send_texts(bot, message.chat.id, await verification_service.start(user))


@router.message()
async def private_message(
    message: Message,
    bot: Bot,
    db_manager: DatabaseManager,
    access_service: AccessService,
    config_service: ConfigService,
    console_service: AdminConsoleService,
    verification_service: VerificationService,
    filter_service: ContentFilterService,
    relay_service: RelayService,
):
    """Основной конвейер личных сообщений."""
    user_id = str(message.from_user.id)
    user = await db_manager.users.get_or_create(user_id)
    if user.is_blocked:
        logger.debug(f"🔇 Сообщение от заблокированного пользователя {user_id} отброшено")
        return

    if await access_service.is_authorized_admin(user_id):
        if await handle_admin_input(message, bot, config_service, console_service):
            return
        await verification_service.mark_verified(user)

    if user.state == UserState.PENDING_VERIFICATION:
        passed = await verification_service.check_answer(user, message.text or "")
        await send_texts(bot, message.chat.id, [VERIFIED_TEXT if passed else WRONG_ANSWER_TEXT])
        return

    if not user.is_verified:
        await send_texts(bot, message.chat.id, [START_PROMPT_TEXT])
        return

    result = await filter_service.apply(message, user)
    await send_texts(bot, message.chat.id, result.notices)
    if result.should_relay:
        await relay_service.relay_to_topic(message, user)


async def handle_admin_input(
    message: Message,
    bot: Bot,
    config_service: ConfigService,
    console_service: AdminConsoleService,
) -> bool:
    """
    Обрабатывает ввод мастера настроек. Возвращает True, если сообщение
    поглощено мастером и дальше по конвейеру не идет.
    """
    admin_id = str(message.from_user.id)
    try:
        state = await console_service.get_state(admin_id)
    except MalformedAdminState as e:
        logger.warning(f"⚠️ Поврежденное состояние мастера у {admin_id}: {e}")
        await console_service.reset(admin_id)
        await send_texts(bot, message.chat.id, [MALFORMED_STATE_TEXT])
        return True

    if is_cancel_command(message.text):
        menu = await console_service.cancel(admin_id)
        if isinstance(state, Idle):
            await send_texts(bot, message.chat.id, ["Нечего отменять."])
            return True
        await send_texts(bot, message.chat.id, ["❌ Ввод отменен."])
        text, keyboard = await render_menu(menu, config_service)
        await show_menu(bot, message.chat.id, text, keyboard)
        return True

    if isinstance(state, Idle):
        return False

    if message.text is None:
        await send_texts(bot, message.chat.id, ["⚠️ Ожидается текстовое сообщение."])
        return True

    outcome = await console_service.handle_input(admin_id, state, message.text)
    try:
        await bot.send_message(chat_id=message.chat.id, text=outcome.text, parse_mode="HTML")
    except TelegramAPIError as e:
        logger.error(f"❌ Не удалось ответить администратору {admin_id}: {e}")

    if outcome.finished:
        text, keyboard = await render_menu(outcome.next_menu, config_service)
        await show_menu(bot, message.chat.id, text, keyboard)
    return True


@router.edited_message()
async def private_edited_message(message: Message, relay_service: RelayService):
    """Правка сообщения пользователем - уведомление в его тему."""
    await relay_service.on_user_edit(message)
