"""
Модель снимка сообщения для отслеживания редактирований.
"""
from typing import Optional

from pydantic import BaseModel


class MessageSnapshot(BaseModel):
    """
    Последнее известное содержимое сообщения.
    Ключ: (user_id, message_id); при каждом редактировании перезаписывается.
    """
    user_id: str
    message_id: str
    text: Optional[str] = None
    date: Optional[int] = None
