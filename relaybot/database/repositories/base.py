"""Базовый класс для всех репозиториев."""

from typing import Any, Iterable, List, Optional

import aiosqlite


class BaseRepository:
    """
    Базовый класс репозитория.

    Каждый вызов - отдельный запрос с немедленным commit,
    многошаговые транзакции не используются.
    """

    def __init__(self, conn: aiosqlite.Connection):
        """
        Инициализация репозитория.

        :param conn: Соединение с базой данных.
        """
        self.conn = conn

    async def execute(self, query: str, parameters: Optional[Iterable[Any]] = None) -> int:
        """Выполнение SQL запроса. Возвращает количество затронутых строк."""
        async with self.conn.execute(query, tuple(parameters or ())) as cursor:
            await self.conn.commit()
            return cursor.rowcount

    async def fetchone(self, query: str, parameters: Optional[Iterable[Any]] = None) -> Optional[aiosqlite.Row]:
        """Выполнение SQL запроса и получение одной записи."""
        async with self.conn.execute(query, tuple(parameters or ())) as cursor:
            return await cursor.fetchone()

    async def fetchall(self, query: str, parameters: Optional[Iterable[Any]] = None) -> List[aiosqlite.Row]:
        """Выполнение SQL запроса и получение всех записей."""
        async with self.conn.execute(query, tuple(parameters or ())) as cursor:
            return list(await cursor.fetchall())
