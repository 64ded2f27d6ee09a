"""Репозиторий для работы с таблицей config (ключ-значение)."""

from typing import Optional

from .base import BaseRepository


class ConfigRepository(BaseRepository):
    """Хранилище настроек и состояний мастеров администраторов."""

    async def get(self, key: str) -> Optional[str]:
        """Получение значения по ключу. None, если ключа нет."""
        row = await self.fetchone("SELECT value FROM config WHERE key = ?", (key,))
        return row["value"] if row else None

    async def put(self, key: str, value: str) -> None:
        """Вставка или обновление значения."""
        query = """
            INSERT INTO config (key, value) VALUES (?, ?)
            ON CONFLICT(key) DO UPDATE SET value = excluded.value
        """
        await self.execute(query, (key, value))

    async def delete(self, key: str) -> bool:
        """Удаление ключа."""
        return await self.execute("DELETE FROM config WHERE key = ?", (key,)) > 0
