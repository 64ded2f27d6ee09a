"""Базовые функции для административных операций."""
from typing import Optional

from aiogram import Bot
from aiogram.exceptions import TelegramAPIError
from aiogram.types import CallbackQuery, InlineKeyboardMarkup, Message
from loguru import logger

from relaybot.services.access_service import AccessService


NO_RIGHTS_TEXT = "❌ У вас нет прав на это действие."


async def check_admin_permissions(callback: CallbackQuery, bot: Bot, access_service: AccessService) -> bool:
    """Пропускает только главных и делегированных администраторов."""
    if await access_service.is_authorized_admin(callback.from_user.id):
        return True
    logger.debug(f"❌ Пользователь {callback.from_user.id} нажал {callback.data!r} без прав")
    await bot.answer_callback_query(callback.id, text=NO_RIGHTS_TEXT, show_alert=True)
    return False


async def show_menu(
    bot: Bot,
    chat_id: int,
    text: str,
    reply_markup: InlineKeyboardMarkup,
    message: Optional[Message] = None,
) -> None:
    """
    Редактирует сообщение с меню, а если это невозможно
    (сообщения нет или оно удалено) - отправляет новое.
    """
    if message is not None:
        try:
            await bot.edit_message_text(
                text=text,
                chat_id=chat_id,
                message_id=message.message_id,
                reply_markup=reply_markup,
                parse_mode="HTML",
            )
            return
        except TelegramAPIError as e:
            if "message is not modified" in str(e):
                return
            logger.warning(f"⚠️ Не удалось отредактировать меню, отправляем новое: {e}")

    try:
        await bot.send_message(chat_id=chat_id, text=text, reply_markup=reply_markup, parse_mode="HTML")
    except TelegramAPIError as e:
        logger.error(f"❌ Не удалось отправить меню администратору {chat_id}: {e}")
