"""HTTP-вход для вебхука Telegram (aiohttp)."""

import asyncio
from typing import Set

from aiogram import Bot, Dispatcher
from aiogram.types import Update
from aiohttp import web
from loguru import logger

from relaybot.database.manager import DatabaseInitError, DatabaseManager


class WebhookHandler:
    """
    Принимает обновления и сразу отвечает 200 OK, обработка идет
    в отдельной задаче. Перед каждым запросом проверяется схема БД.
    """

    def __init__(self, dp: Dispatcher, bot: Bot, db_manager: DatabaseManager):
        self.dp = dp
        self.bot = bot
        self.db_manager = db_manager
        self._tasks: Set[asyncio.Task] = set()

    async def handle(self, request: web.Request) -> web.Response:
        try:
            await self.db_manager.ensure_schema()
        except DatabaseInitError as e:
            return web.Response(status=500, text=f"Database initialization failed: {e}")

        if request.method != "POST":
            return web.Response(text="OK")

        try:
            payload = await request.json()
            update = Update.model_validate(payload, context={"bot": self.bot})
        except ValueError as e:
            logger.error(f"❌ Не удалось разобрать обновление: {e}")
            return web.Response(text="OK")

        task = asyncio.create_task(self._process(update))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return web.Response(text="OK")

    async def _process(self, update: Update) -> None:
        try:
            await self.dp.feed_update(self.bot, update)
        except Exception as e:
            logger.exception(f"💥 Ошибка обработки обновления {update.update_id}: {e}")

    @property
    def pending(self) -> int:
        return len(self._tasks)

    async def wait_closed(self) -> None:
        """Дожидается обработки уже принятых обновлений."""
        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)


WEBHOOK_HANDLER_KEY = web.AppKey("webhook_handler", WebhookHandler)


def create_app(dp: Dispatcher, bot: Bot, db_manager: DatabaseManager, path: str = "/") -> web.Application:
    """Приложение aiohttp с единственным маршрутом вебхука."""
    handler = WebhookHandler(dp, bot, db_manager)
    app = web.Application()
    app[WEBHOOK_HANDLER_KEY] = handler
    app.router.add_route("*", path, handler.handle)
    return app
