from .message_snapshot import MessageSnapshot
from .rules import AutoReplyRule
from .user import User, UserInfo

__all__ = ["AutoReplyRule", "MessageSnapshot", "User", "UserInfo"]
