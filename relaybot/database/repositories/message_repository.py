"""Репозиторий снимков сообщений для отслеживания редактирований."""

from typing import Optional

from .base import BaseRepository
from ..models.message_snapshot import MessageSnapshot


class MessageRepository(BaseRepository):
    """Снимки последних версий сообщений (таблица messages)."""

    async def put(self, user_id: str, message_id: str, text: Optional[str], date: Optional[int]) -> None:
        """Сохраняет снимок, перезаписывая предыдущий."""
        query = """
            INSERT INTO messages (user_id, message_id, text, date) VALUES (?, ?, ?, ?)
            ON CONFLICT(user_id, message_id) DO UPDATE SET
                text = excluded.text,
                date = excluded.date
        """
        await self.execute(query, (str(user_id), str(message_id), text, date))

    async def get(self, user_id: str, message_id: str) -> Optional[MessageSnapshot]:
        """Получает снимок сообщения или None."""
        row = await self.fetchone(
            "SELECT * FROM messages WHERE user_id = ? AND message_id = ?",
            (str(user_id), str(message_id)),
        )
        return MessageSnapshot(**row) if row else None
