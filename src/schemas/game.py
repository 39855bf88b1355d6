"""Game schema definitions.

This module defines the GameStatus enumeration, the GameDetail read view and
the request bodies of the game routes.
"""

from datetime import date
from enum import Enum
from typing import Dict, Optional

from pydantic import BaseModel, Field, computed_field

from core.exceptions import ValidationError

TITLE_MAX_LENGTH = 100


class GameStatus(str, Enum):
    """Play status of a catalog entry. Values are the stored codes."""

    BACKLOG = "Backlog"
    IN_PROGRESS = "InProgress"
    DONE = "Done"

    @property
    def label(self) -> str:
        return STATUS_LABELS[self]

    @classmethod
    def parse(cls, value) -> "GameStatus":
        """Accept a GameStatus, a stored code, or a display label.

        Raises:
            ValidationError: If the value is not a recognised status.
        """
        if isinstance(value, cls):
            return value
        for status in cls:
            if value == status.value or value == status.label:
                return status
        raise ValidationError(
            f"Status must be one of: {', '.join(s.value for s in cls)}"
        )


# Display labels shown by the Swedish UI
STATUS_LABELS: Dict[GameStatus, str] = {
    GameStatus.BACKLOG: "Backlog",
    GameStatus.IN_PROGRESS: "Pågående",
    GameStatus.DONE: "Klar",
}


class SortDirection(str, Enum):
    ASC = "asc"
    DESC = "desc"

    @classmethod
    def parse(cls, value) -> "SortDirection":
        if value is None:
            return cls.ASC
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            raise ValidationError("Sort direction must be 'asc' or 'desc'") from None


class Game(BaseModel):
    game_id: str
    title: str
    platform: str
    genre: str
    status: GameStatus
    release_date: Optional[date] = None
    created_at: str
    updated_at: Optional[str] = None


class GameDetail(Game):
    """A game together with its freshly computed review aggregate."""

    average_rating: float = Field(
        default=0.0,
        description="Mean of the game's review ratings, 0 when unreviewed.",
    )
    review_count: int = 0

    @computed_field
    @property
    def status_label(self) -> str:
        return self.status.label


class CreateGameRequest(BaseModel):
    title: str
    platform: str
    genre: str
    status: str = GameStatus.BACKLOG.value
    release_date: Optional[date] = None


class UpdateGameRequest(BaseModel):
    title: Optional[str] = None
    platform: Optional[str] = None
    genre: Optional[str] = None
    status: Optional[str] = None
    release_date: Optional[date] = None


class AverageRatingResponse(BaseModel):
    game_id: str
    average_rating: float
    review_count: int
