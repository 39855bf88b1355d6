"""Game database model."""

from sqlalchemy import Column, Date, String
from .base import Base


class GameModel(Base):
    """Catalog entry. Reviews reference it by game_id only."""

    __tablename__ = "games"

    game_id = Column(String, primary_key=True, index=True)
    title = Column(String(100), nullable=False, index=True)
    platform = Column(String, nullable=False)
    genre = Column(String, nullable=False, index=True)
    status = Column(String, nullable=False, index=True)  # GameStatus code
    release_date = Column(Date, nullable=True)
    created_at = Column(String, nullable=False)
    updated_at = Column(String, nullable=True)
