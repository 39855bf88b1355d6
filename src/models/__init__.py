"""Database models.

Importing this package registers every table with Base.metadata.
"""

from .base import Base
from .user import UserModel
from .game import GameModel
from .review import ReviewModel

__all__ = ["Base", "UserModel", "GameModel", "ReviewModel"]
