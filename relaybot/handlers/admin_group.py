"""Ответы и правки администраторов в темах группы администраторов."""

from aiogram import F, Router
from aiogram.types import Message
from loguru import logger

from relaybot.services.access_service import AccessService
from relaybot.services.relay_service import RelayService
from config.settings import settings


router = Router(name="admin_group")
# Только сообщения людей внутри тем настроенной группы
for observer in (router.message, router.edited_message):
    observer.filter(
        F.chat.id == settings.ADMIN_GROUP_ID,
        F.is_topic_message,
        F.message_thread_id,
        F.from_user.is_bot.is_(False),
    )


@router.message()
async def admin_reply(message: Message, access_service: AccessService, relay_service: RelayService):
    """Ответ администратора в теме пересылается пользователю."""
    if not await access_service.is_authorized_admin(message.from_user.id):
        logger.debug(f"Сообщение в теме от {message.from_user.id} без прав администратора проигнорировано")
        return
    await relay_service.relay_to_user(message)


@router.edited_message()
async def admin_edited_reply(message: Message, access_service: AccessService, relay_service: RelayService):
    """Правка ответа администратора - уведомление пользователю."""
    if not await access_service.is_authorized_admin(message.from_user.id):
        return
    await relay_service.on_admin_edit(message)
