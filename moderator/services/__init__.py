"""
Services package initialization.
"""
from moderator.services.user_service import UserNotFoundError, UserService

__all__ = [
    "UserService",
    "UserNotFoundError",
]
