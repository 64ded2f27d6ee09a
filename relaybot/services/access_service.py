"""Сервис проверки прав администраторов."""

from typing import Union

from relaybot.services.config_service import ConfigService
from config.settings import Settings


class AccessService:
    """
    Главные администраторы задаются только через окружение (ADMIN_IDS),
    делегированные - списком authorized_admins в БД.
    """

    def __init__(self, config_service: ConfigService, settings: Settings):
        self.config_service = config_service
        self.settings = settings

    def is_primary_admin(self, user_id: Union[int, str]) -> bool:
        """Проверяет, является ли пользователь главным администратором."""
        return str(user_id).strip() in self.settings.admin_ids

    async def is_authorized_admin(self, user_id: Union[int, str]) -> bool:
        """Главный администратор или делегированный через настройки."""
        if self.is_primary_admin(user_id):
            return True
        return str(user_id).strip() in await self.config_service.get_authorized_admins()
