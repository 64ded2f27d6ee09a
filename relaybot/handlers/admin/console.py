"""Обработчики кнопок консоли настроек (callback_data config:...)."""
from aiogram import Bot, F, Router
from aiogram.types import CallbackQuery
from loguru import logger

from relaybot.services.access_service import AccessService
from relaybot.services.admin_console_service import (
    ADD_SUFFIX,
    ADDABLE_KEYS,
    CLEAR_ACTIONS,
    EDITABLE_KEYS,
    AdminConsoleService,
)
from relaybot.services.config_service import ConfigService
from relaybot.utils.callback_data import ConsoleCallback
from .core import check_admin_permissions, show_menu
from .menus import render_list, render_menu, render_prompt

console_router = Router(name="admin_console")


@console_router.callback_query(F.data.startswith("config:"))
async def console_callback(
    callback: CallbackQuery,
    bot: Bot,
    access_service: AccessService,
    config_service: ConfigService,
    console_service: AdminConsoleService,
):
    """Навигация по меню и изменение настроек из консоли."""
    if not await check_admin_permissions(callback, bot, access_service):
        return

    data = ConsoleCallback.parse(callback.data)
    admin_id = str(callback.from_user.id)
    chat_id = callback.message.chat.id if callback.message else callback.from_user.id
    notice = None

    if data.action == "menu":
        menu = data.target or "root"
        await console_service.reset(admin_id)
        text, keyboard = await render_menu(menu, config_service)

    elif data.action == "toggle" and data.target and data.value:
        try:
            await console_service.toggle(data.target, data.value)
        except ValueError as e:
            logger.warning(f"⚠️ Отклонено переключение от {admin_id}: {e}")
            notice = "⚠️ Неизвестный переключатель."
        text, keyboard = await render_menu("filter", config_service)

    elif data.action == "edit" and data.target in CLEAR_ACTIONS:
        menu = await console_service.clear(data.target)
        notice = "✅ Значение очищено."
        text, keyboard = await render_menu(menu, config_service)

    elif data.action == "edit" and data.target in EDITABLE_KEYS:
        await console_service.begin_input(admin_id, data.target)
        text, keyboard = render_prompt(data.target)

    elif data.action == "add" and data.target in ADDABLE_KEYS:
        key = f"{data.target}{ADD_SUFFIX}"
        await console_service.begin_input(admin_id, key)
        text, keyboard = render_prompt(key)

    elif data.action == "list" and data.target in ADDABLE_KEYS:
        text, keyboard = await render_list(data.target, config_service)

    elif data.action == "delete" and data.target in ADDABLE_KEYS and data.value:
        deleted = await console_service.delete_entry(data.target, data.value)
        notice = "✅ Запись удалена." if deleted else "⚠️ Запись не найдена, список обновлен."
        logger.info(f"🗑️ Администратор {admin_id} удалил запись из {data.target}: {deleted}")
        text, keyboard = await render_list(data.target, config_service)

    else:
        logger.warning(f"⚠️ Неизвестная команда консоли: {callback.data!r}")
        await bot.answer_callback_query(callback.id, text="⚠️ Неизвестное действие.")
        return

    await bot.answer_callback_query(callback.id, text=notice)
    await show_menu(bot, chat_id, text, keyboard, callback.message)
