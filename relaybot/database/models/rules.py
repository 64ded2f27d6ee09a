"""
Модели правил фильтрации, хранящихся в config в виде JSON-массивов.
"""
from pydantic import BaseModel


class AutoReplyRule(BaseModel):
    """
    Правило автоответа: регулярное выражение и текст ответа.
    id - метка времени в миллисекундах, используется для удаления.
    """
    keywords: str
    response: str
    id: int
