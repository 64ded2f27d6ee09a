"""Действия модерации с карточки пользователя."""

from aiogram import Bot
from aiogram.exceptions import TelegramAPIError
from aiogram.types import Message
from loguru import logger

from relaybot.database.manager import DatabaseManager
from relaybot.utils.formatting import escape_html
from relaybot.utils.keyboards import get_card_keyboard


class ModerationService:
    """Блокировка, разблокировка и закрепление карточки в теме пользователя."""

    def __init__(self, bot: Bot, db_manager: DatabaseManager):
        self.bot = bot
        self.db_manager = db_manager

    async def set_blocked(self, user_id: str, blocked: bool, card_message: Message) -> None:
        """
        Меняет флаг блокировки, переключает кнопку на карточке
        и публикует подтверждение в теме.
        """
        await self.db_manager.users.update(user_id, is_blocked=blocked)
        user = await self.db_manager.users.get_or_create(user_id)
        user_name = (user.info.name if user.info else "") or user_id
        logger.info(f"{'🚫' if blocked else '✅'} Пользователь {user_id} {'заблокирован' if blocked else 'разблокирован'}")

        if blocked:
            confirmation = (
                f"❌ <b>Пользователь [{escape_html(user_name)}] заблокирован.</b>\n"
                "Его дальнейшие сообщения будут отбрасываться."
            )
        else:
            confirmation = (
                f"✅ <b>Пользователь [{escape_html(user_name)}] разблокирован.</b>\n"
                "Бот снова принимает его сообщения."
            )

        try:
            await self.bot.edit_message_reply_markup(
                chat_id=card_message.chat.id,
                message_id=card_message.message_id,
                reply_markup=get_card_keyboard(user_id, blocked),
            )
            await self.bot.send_message(
                chat_id=card_message.chat.id,
                message_thread_id=card_message.message_thread_id,
                text=confirmation,
                parse_mode="HTML",
            )
        except TelegramAPIError as e:
            logger.error(f"❌ Не удалось обновить карточку пользователя {user_id}: {e}")

    async def pin_card(self, card_message: Message) -> None:
        """Закрепляет карточку без уведомления. Ошибки Telegram пробрасываются."""
        await self.bot.pin_chat_message(
            chat_id=card_message.chat.id,
            message_id=card_message.message_id,
            disable_notification=True,
        )
