from .config_repository import ConfigRepository
from .message_repository import MessageRepository
from .user_repository import UserRepository

__all__ = ["ConfigRepository", "MessageRepository", "UserRepository"]
