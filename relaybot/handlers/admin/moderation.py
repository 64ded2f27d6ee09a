"""Кнопки карточки пользователя в группе администраторов."""
from aiogram import Bot, F, Router
from aiogram.exceptions import TelegramAPIError
from aiogram.types import CallbackQuery, Message
from loguru import logger

from relaybot.services.access_service import AccessService
from relaybot.services.moderation_service import ModerationService
from config.settings import settings
from .core import check_admin_permissions

moderation_router = Router(name="admin_moderation")
moderation_router.callback_query.filter(F.message.chat.id == settings.ADMIN_GROUP_ID)

CARD_UNAVAILABLE_TEXT = "⚠️ Карточка слишком старая, Telegram не дает ее изменить."


async def card_is_accessible(callback: CallbackQuery, bot: Bot) -> bool:
    """Старше 48 часов карточка приходит как InaccessibleMessage."""
    if isinstance(callback.message, Message):
        return True
    await bot.answer_callback_query(callback.id, text=CARD_UNAVAILABLE_TEXT, show_alert=True)
    return False


@moderation_router.callback_query(F.data.regexp(r"^(block|unblock):\d+$"))
async def toggle_block(
    callback: CallbackQuery,
    bot: Bot,
    access_service: AccessService,
    moderation_service: ModerationService,
):
    """Блокировка или разблокировка пользователя с карточки."""
    if not await check_admin_permissions(callback, bot, access_service):
        return
    if not await card_is_accessible(callback, bot):
        return

    action, user_id = callback.data.split(":", 1)
    blocked = action == "block"
    await moderation_service.set_blocked(user_id, blocked, callback.message)
    await bot.answer_callback_query(
        callback.id,
        text="🚫 Пользователь заблокирован." if blocked else "✅ Пользователь разблокирован.",
    )


@moderation_router.callback_query(F.data.startswith("pin_card:"))
async def pin_card(
    callback: CallbackQuery,
    bot: Bot,
    access_service: AccessService,
    moderation_service: ModerationService,
):
    """Закрепление карточки пользователя в теме."""
    if not await check_admin_permissions(callback, bot, access_service):
        return
    if not await card_is_accessible(callback, bot):
        return

    try:
        await moderation_service.pin_card(callback.message)
    except TelegramAPIError as e:
        logger.error(f"❌ Не удалось закрепить карточку: {e}")
        await bot.answer_callback_query(callback.id, text=f"❌ Не удалось закрепить: {e}", show_alert=True)
        return

    await bot.answer_callback_query(callback.id, text="✅ Карточка закреплена.")
