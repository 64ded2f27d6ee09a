"""Middleware для передачи сервисов в обработчики."""

from typing import Any, Awaitable, Callable, Dict

from aiogram import BaseMiddleware
from aiogram.types import TelegramObject, Update
from loguru import logger

from relaybot.database.manager import DatabaseManager
from relaybot.services.access_service import AccessService
from relaybot.services.admin_console_service import AdminConsoleService
from relaybot.services.backup_service import BackupService
from relaybot.services.config_service import ConfigService
from relaybot.services.filter_service import ContentFilterService
from relaybot.services.moderation_service import ModerationService
from relaybot.services.relay_service import RelayService
from relaybot.services.verification_service import VerificationService
from config.settings import Settings


class ServiceMiddleware(BaseMiddleware):
    """
    Middleware для передачи сервисов и менеджеров в обработчики.
    Создает сервисы "на лету" для каждого события.
    """

    def __init__(self, db_manager: DatabaseManager, settings: Settings):
        """Инициализация middleware."""
        super().__init__()
        self.db_manager = db_manager
        self.settings = settings

    async def __call__(
        self,
        handler: Callable[[TelegramObject, Dict[str, Any]], Awaitable[Any]],
        event: TelegramObject,
        data: Dict[str, Any],
    ) -> Any:
        """Выполнение middleware."""
        if isinstance(event, Update):
            logger.debug(f"🔧 SERVICE_MIDDLEWARE: обновление {event.update_id} ({event.event_type})")

        bot = data["bot"]
        config_service = ConfigService(self.db_manager, self.settings)

        data["db_manager"] = self.db_manager
        data["settings"] = self.settings
        data["config_service"] = config_service
        data["access_service"] = AccessService(config_service, self.settings)
        data["console_service"] = AdminConsoleService(config_service)
        data["verification_service"] = VerificationService(self.db_manager, config_service)
        data["filter_service"] = ContentFilterService(self.db_manager, config_service)
        data["moderation_service"] = ModerationService(bot, self.db_manager)
        data["relay_service"] = RelayService(
            bot,
            self.db_manager,
            self.settings,
            backup_service=BackupService(bot, config_service),
        )

        return await handler(event, data)
