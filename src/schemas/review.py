"""Review schema definitions."""

from typing import Optional

from pydantic import BaseModel, Field

MIN_RATING = 1
MAX_RATING = 10


class Review(BaseModel):
    review_id: str
    rating: int
    comment: str = ""
    game_id: str
    user_id: str
    created_at: str
    updated_at: Optional[str] = None


class CreateReviewRequest(BaseModel):
    """Body for posting a review. The author comes from the bearer token."""

    game_id: str
    rating: int = Field(description="Integer score from 1 to 10 inclusive.")
    comment: str = ""


class UpdateReviewRequest(BaseModel):
    rating: Optional[int] = None
    comment: Optional[str] = None
