"""Review database model."""

from sqlalchemy import CheckConstraint, Column, ForeignKey, Integer, String, Text
from .base import Base


class ReviewModel(Base):
    __tablename__ = "reviews"
    __table_args__ = (
        CheckConstraint(
            "rating >= 1 AND rating <= 10", name="ck_reviews_rating_range"
        ),
    )

    review_id = Column(String, primary_key=True, index=True)
    rating = Column(Integer, nullable=False)
    comment = Column(Text, nullable=False, default="")
    game_id = Column(
        String,
        ForeignKey("games.game_id", ondelete="CASCADE"),
        index=True,
        nullable=False,
    )
    user_id = Column(
        String,
        ForeignKey("users.user_id", ondelete="CASCADE"),
        index=True,
        nullable=False,
    )
    created_at = Column(String, nullable=False)
    updated_at = Column(String, nullable=True)
