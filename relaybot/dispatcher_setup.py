"""
Настройка и регистрация всех обработчиков и middleware для диспетчера.
"""
from typing import TYPE_CHECKING

from aiogram import Dispatcher
from loguru import logger

from relaybot.handlers import admin_group_router, admin_router, private_router
from relaybot.middleware.services import ServiceMiddleware


if TYPE_CHECKING:
    from relaybot.database.manager import DatabaseManager
    from config.settings import Settings


def setup_dispatcher(
    dp: Dispatcher,
    db_manager: "DatabaseManager",
    settings: "Settings",
) -> None:
    """
    Настраивает диспетчер, регистрируя middleware и обработчики.

    Args:
        dp: Экземпляр Dispatcher.
        db_manager: Менеджер базы данных.
        settings: Конфигурация бота.
    """
    service_middleware = ServiceMiddleware(
        db_manager=db_manager,
        settings=settings,
    )
    dp.update.middleware(service_middleware)

    dp.include_router(admin_router)
    dp.include_router(private_router)
    dp.include_router(admin_group_router)

    logger.info("Все обработчики успешно зарегистрированы.")
