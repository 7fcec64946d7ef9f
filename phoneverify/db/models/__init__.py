# Models package (re-export feature modules for stable imports)
from .users.user import UserRow

__all__ = [
    "UserRow",
]
