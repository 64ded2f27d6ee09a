"""Команды бота в меню Telegram."""
from aiogram import Bot
from aiogram.exceptions import TelegramAPIError
from aiogram.types import BotCommand, BotCommandScopeAllGroupChats, BotCommandScopeAllPrivateChats, BotCommandScopeDefault
from loguru import logger


PRIVATE_COMMANDS = (
    BotCommand(command="start", description="Начать / меню настроек"),
    BotCommand(command="help", description="Помощь"),
    BotCommand(command="cancel", description="Отменить ввод настройки"),
)

# В группах команд нет: администраторы отвечают в темах и нажимают кнопки
CLEARED_SCOPES = (BotCommandScopeDefault(), BotCommandScopeAllGroupChats())


async def set_bot_commands(bot: Bot):
    """Оставляет команды только в личных чатах с ботом."""
    for scope in CLEARED_SCOPES:
        try:
            await bot.delete_my_commands(scope=scope)
        except TelegramAPIError as e:
            logger.warning(f"Ошибка при очистке команд ({scope.type}): {e}")

    try:
        await bot.set_my_commands(list(PRIVATE_COMMANDS), scope=BotCommandScopeAllPrivateChats())
        logger.info(f"Команды бота настроены для личных сообщений: {len(PRIVATE_COMMANDS)}")
    except TelegramAPIError as e:
        logger.error(f"Не удалось установить команды бота: {e}")
