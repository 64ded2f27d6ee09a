import asyncio
from pathlib import Path
from typing import Optional

from loguru import logger
import aiosqlite

from relaybot.database.repositories.config_repository import ConfigRepository
from relaybot.database.repositories.message_repository import MessageRepository
from relaybot.database.repositories.user_repository import UserRepository


class DatabaseInitError(RuntimeError):
    """Не удалось подготовить схему базы данных."""


class DatabaseManager:
    """
    Управление базой данных SQLite и репозиториями.

    Отвечает за соединение и создание таблиц, а также предоставляет
    доступ к репозиториям. ensure_schema() идемпотентна и должна быть
    вызвана до любой другой операции.
    """

    def __init__(self, db_path: str):
        """Инициализация менеджера базы данных."""
        self.db_path = db_path
        self.conn: Optional[aiosqlite.Connection] = None
        self.config: Optional[ConfigRepository] = None
        self.users: Optional[UserRepository] = None
        self.messages: Optional[MessageRepository] = None
        self._schema_ready = False
        self._schema_lock = asyncio.Lock()

    @property
    def is_ready(self) -> bool:
        return self._schema_ready

    async def ensure_schema(self) -> None:
        """
        Подключается к БД и создает таблицы, если их нет.
        Повторные вызовы после успеха ничего не делают.
        """
        if self._schema_ready:
            return

        # Параллельные вебхуки ждут первую инициализацию, а не открывают свои соединения
        async with self._schema_lock:
            if self._schema_ready:
                return

            try:
                if self.conn is None:
                    self.conn = await aiosqlite.connect(self.db_path)
                    self.conn.row_factory = aiosqlite.Row
                await self._run_sql_scripts()
            except Exception as e:
                logger.critical(f"💥 Ошибка инициализации базы данных: {e}")
                raise DatabaseInitError(str(e)) from e

            self._init_repositories()
            self._schema_ready = True
        logger.info("База данных и репозитории успешно инициализированы")

    def _init_repositories(self) -> None:
        """Инициализация всех репозиториев."""
        self.config = ConfigRepository(self.conn)
        self.users = UserRepository(self.conn)
        self.messages = MessageRepository(self.conn)

    async def _run_sql_scripts(self) -> None:
        """
        Выполнение SQL-скриптов для создания таблиц.

        Скрипты читаются из директории relaybot/database/sql
        и выполняются в алфавитном порядке.
        """
        sql_dir = Path(__file__).parent / "sql"
        scripts = sorted(sql_dir.glob("*.sql"))
        if not scripts:
            raise DatabaseInitError(f"SQL-скрипты не найдены в {sql_dir}")

        async with self.conn.cursor() as cursor:
            for script_path in scripts:
                try:
                    sql_query = script_path.read_text(encoding="utf-8").strip()
                    await cursor.execute(sql_query)
                except Exception as e:
                    logger.error(f"❌ Ошибка выполнения SQL-скрипта {script_path.name}: {e}")
                    raise

        await self.conn.commit()
        logger.info(f"Инициализация БД завершена: выполнено {len(scripts)} SQL-скриптов")

    async def close(self) -> None:
        """Закрытие соединения с базой данных."""
        if self.conn:
            await self.conn.close()
            self.conn = None
            self._schema_ready = False
            logger.info("Соединение с базой данных закрыто")
