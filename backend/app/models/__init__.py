from .base import Base
from .role import Role
from .user import User

__all__ = [
    "Base",
    "Role",
    "User",
]
