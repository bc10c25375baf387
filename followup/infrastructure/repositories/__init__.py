from .comment_repository import CommentRepository
from .followup_request_repository import FollowUpRequestRepository
from .order_repository import OrderRepository
from .settings_repository import SettingsRepository
from .user_repository import UserRepository

__all__ = [
    "CommentRepository",
    "FollowUpRequestRepository",
    "OrderRepository",
    "SettingsRepository",
    "UserRepository",
]
