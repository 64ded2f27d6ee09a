"""Основной класс приложения для управления ботом."""

import asyncio
from typing import Optional

from aiogram import Bot, Dispatcher
from aiogram.client.default import DefaultBotProperties
from aiogram.enums import ParseMode
from aiogram.exceptions import TelegramAPIError
from aiohttp import web
from loguru import logger

from relaybot.database.manager import DatabaseInitError, DatabaseManager
from relaybot.dispatcher_setup import setup_dispatcher
from relaybot.utils.commands import set_bot_commands
from relaybot.webhook import WEBHOOK_HANDLER_KEY, create_app
from config.settings import Settings


class BotApp:
    """
    Основной класс приложения, который инициализирует и координирует
    все компоненты бота: настройки, базу данных, диспетчер, транспорт.
    """

    def __init__(self, settings: Settings):
        self.settings = settings
        self.bot: Optional[Bot] = None
        self.dp: Optional[Dispatcher] = None
        self.db_manager: Optional[DatabaseManager] = None
        self._runner: Optional[web.AppRunner] = None

    async def _setup_bot_and_dispatcher(self):
        """Инициализирует бота и диспетчер."""
        self.bot = Bot(
            token=self.settings.get_bot_token(),
            default=DefaultBotProperties(parse_mode=ParseMode.HTML),
        )
        self.dp = Dispatcher()
        logger.info("Бот и диспетчер успешно настроены.")

    async def _setup_database(self):
        """
        Создает менеджер базы данных. В режиме webhook ошибка схемы не
        останавливает сервер: каждый запрос повторяет попытку и отвечает 500.
        """
        self.db_manager = DatabaseManager(self.settings.DATABASE_PATH)
        try:
            await self.db_manager.ensure_schema()
        except DatabaseInitError:
            if self.settings.USE_POLLING:
                raise
            logger.warning("⚠️ База данных не готова, повторим при первом запросе")

    async def _setup_dispatcher(self):
        """Настраивает и регистрирует все компоненты в диспетчере."""
        setup_dispatcher(
            dp=self.dp,
            db_manager=self.db_manager,
            settings=self.settings,
        )
        logger.info("Диспетчер полностью настроен.")

    async def on_startup(self):
        """Выполняется при старте бота."""
        logger.info("Запуск бота...")
        try:
            await set_bot_commands(self.bot)
            logger.info("Команды бота успешно установлены")
        except TelegramAPIError as e:
            logger.error(f"Ошибка при установке команд бота: {e}")

    async def on_shutdown(self):
        """Выполняется при остановке бота."""
        logger.info("Остановка бота...")
        if self._runner:
            handler = self._runner.app.get(WEBHOOK_HANDLER_KEY)
            if handler:
                await handler.wait_closed()
            await self._runner.cleanup()
            self._runner = None
        if self.db_manager:
            await self.db_manager.close()
        if self.bot:
            await self.bot.session.close()
        logger.info("Все ресурсы освобождены. Бот остановлен.")

    async def _run_webhook(self):
        """Поднимает HTTP-сервер вебхука и регистрирует URL, если он задан."""
        app = create_app(self.dp, self.bot, self.db_manager, self.settings.WEBHOOK_PATH)
        self._runner = web.AppRunner(app)
        await self._runner.setup()
        site = web.TCPSite(self._runner, self.settings.WEBHOOK_HOST, self.settings.WEBHOOK_PORT)
        await site.start()
        logger.info(
            f"🌐 Webhook слушает http://{self.settings.WEBHOOK_HOST}:{self.settings.WEBHOOK_PORT}{self.settings.WEBHOOK_PATH}"
        )

        await self.on_startup()
        if self.settings.WEBHOOK_URL:
            await self.bot.set_webhook(
                self.settings.WEBHOOK_URL,
                allowed_updates=self.dp.resolve_used_update_types(),
            )
            logger.info(f"Webhook зарегистрирован: {self.settings.WEBHOOK_URL}")

        await asyncio.Event().wait()

    async def run(self):
        """Главный метод для запуска бота."""
        try:
            await self._setup_bot_and_dispatcher()
            await self._setup_database()
            await self._setup_dispatcher()

            if self.settings.USE_POLLING:
                self.dp.startup.register(self.on_startup)
                allowed_updates = self.dp.resolve_used_update_types()
                logger.debug(f"Типы обновлений: {allowed_updates}")
                await self.bot.delete_webhook(drop_pending_updates=False)
                await self.dp.start_polling(self.bot, allowed_updates=allowed_updates)
            else:
                await self._run_webhook()
        except Exception as e:
            logger.opt(exception=True).critical(f"Критическая ошибка при запуске бота: {e}")
        finally:
            await self.on_shutdown()
