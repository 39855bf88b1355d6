"""Catalog management utilities.

This module owns games and reviews: CRUD, the reference checks that keep
reviews attached to existing games and users, and the derived average rating.
Relations are plain id columns resolved by explicit queries.
"""

import logging
import random
import uuid
from datetime import date, datetime
from typing import Dict, Iterable, List, Optional, Tuple

import pytz
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from core.exceptions import (
    ConstraintViolationError,
    GameNotFoundError,
    ReferenceViolationError,
    ReviewNotFoundError,
    ValidationError,
)
from models.game import GameModel
from models.review import ReviewModel
from models.user import UserModel
from schemas.game import TITLE_MAX_LENGTH, GameDetail, GameStatus, SortDirection
from schemas.review import MAX_RATING, MIN_RATING, Review
from utils.converters import model_to_game_detail, model_to_review

logger = logging.getLogger(__name__)


def validate_rating(rating) -> int:
    """Return the rating if it is an integer within 1-10.

    Raises:
        ValidationError: For non-integers, booleans, and out-of-range values.
    """
    if isinstance(rating, bool) or not isinstance(rating, int):
        raise ValidationError("rating must be an integer")
    if not MIN_RATING <= rating <= MAX_RATING:
        raise ValidationError(
            f"rating must be between {MIN_RATING} and {MAX_RATING}"
        )
    return rating


def _require_text(value: Optional[str], field: str) -> str:
    if value is None or not str(value).strip():
        raise ValidationError(f"{field} is required")
    return str(value).strip()


def _validate_title(title: Optional[str]) -> str:
    title = _require_text(title, "title")
    if len(title) > TITLE_MAX_LENGTH:
        raise ValidationError(f"title cannot exceed {TITLE_MAX_LENGTH} characters")
    return title


def _now() -> str:
    return datetime.now(pytz.utc).isoformat()


class CatalogManager:
    """Manages games, reviews, and rating aggregation."""

    def __init__(self, db: Session, rng: Optional[random.Random] = None):
        """Initialize CatalogManager.

        Args:
            db: SQLAlchemy Session.
            rng: Random source for pick_random_game.
        """
        self.db = db
        self.rng = rng or random.Random()

    # --- Aggregation ---

    def _rating_stats(self, game_ids: Iterable[str]) -> Dict[str, Tuple[int, int]]:
        """Return {game_id: (rating_sum, review_count)} for reviewed games."""
        game_ids = list(game_ids)
        if not game_ids:
            return {}
        rows = (
            self.db.query(
                ReviewModel.game_id,
                func.sum(ReviewModel.rating),
                func.count(ReviewModel.review_id),
            )
            .filter(ReviewModel.game_id.in_(game_ids))
            .group_by(ReviewModel.game_id)
            .all()
        )
        return {game_id: (int(total), int(count)) for game_id, total, count in rows}

    @staticmethod
    def _mean(stats: Optional[Tuple[int, int]]) -> float:
        if not stats or stats[1] == 0:
            return 0.0
        total, count = stats
        return total / count

    def _to_details(self, models: List[GameModel]) -> List[GameDetail]:
        stats = self._rating_stats(m.game_id for m in models)
        details = []
        for model in models:
            game_stats = stats.get(model.game_id)
            details.append(
                model_to_game_detail(
                    model,
                    average_rating=self._mean(game_stats),
                    review_count=game_stats[1] if game_stats else 0,
                )
            )
        return details

    def average_rating(self, game_id: str) -> float:
        """Compute the mean rating of a game's current reviews.

        Args:
            game_id: ID of the game.

        Returns:
            sum(ratings) / count(ratings), or 0.0 when there are no reviews.

        Raises:
            GameNotFoundError: If the game does not exist.
        """
        self._get_game_model(game_id)
        return self._mean(self._rating_stats([game_id]).get(game_id))

    # --- Games ---

    def _get_game_model(self, game_id: str) -> GameModel:
        model = self.db.query(GameModel).filter(GameModel.game_id == game_id).first()
        if not model:
            raise GameNotFoundError(game_id)
        return model

    def create_game(
        self,
        title: str,
        platform: str,
        genre: str,
        status=GameStatus.BACKLOG,
        release_date: Optional[date] = None,
    ) -> GameDetail:
        """Create a catalog entry.

        Raises:
            ValidationError: If a required field is blank, the title is too
                long, or the status is not recognised.
        """
        now = _now()
        model = GameModel(
            game_id=str(uuid.uuid4()),
            title=_validate_title(title),
            platform=_require_text(platform, "platform"),
            genre=_require_text(genre, "genre"),
            status=GameStatus.parse(status).value,
            release_date=release_date,
            created_at=now,
            updated_at=now,
        )
        self.db.add(model)
        self.db.commit()
        self.db.refresh(model)
        logger.info("Created game: %s (id=%s)", model.title, model.game_id)
        return model_to_game_detail(model)

    def get_game(self, game_id: str) -> GameDetail:
        """Read a game with a freshly computed average rating.

        Raises:
            GameNotFoundError: If the game does not exist.
        """
        return self._to_details([self._get_game_model(game_id)])[0]

    def list_games(self) -> List[GameDetail]:
        models = self.db.query(GameModel).order_by(GameModel.created_at).all()
        return self._to_details(models)

    def list_games_by_genre(self, genre: str) -> List[GameDetail]:
        models = (
            self.db.query(GameModel)
            .filter(GameModel.genre == genre)
            .order_by(GameModel.created_at)
            .all()
        )
        return self._to_details(models)

    def list_games_by_status(self, status) -> List[GameDetail]:
        """List games with the given status code or display label.

        Raises:
            ValidationError: If the status is not recognised.
        """
        code = GameStatus.parse(status).value
        models = (
            self.db.query(GameModel)
            .filter(GameModel.status == code)
            .order_by(GameModel.created_at)
            .all()
        )
        return self._to_details(models)

    def update_game(
        self,
        game_id: str,
        title: Optional[str] = None,
        platform: Optional[str] = None,
        genre: Optional[str] = None,
        status=None,
        release_date: Optional[date] = None,
    ) -> GameDetail:
        """Update a game. Omitted fields are left unchanged.

        Raises:
            GameNotFoundError: If the game does not exist.
            ValidationError: If a provided field is invalid.
        """
        model = self._get_game_model(game_id)
        # Validate everything before touching the row
        changes = {}
        if title is not None:
            changes["title"] = _validate_title(title)
        if platform is not None:
            changes["platform"] = _require_text(platform, "platform")
        if genre is not None:
            changes["genre"] = _require_text(genre, "genre")
        if status is not None:
            changes["status"] = GameStatus.parse(status).value
        if release_date is not None:
            changes["release_date"] = release_date

        for field, value in changes.items():
            setattr(model, field, value)
        model.updated_at = _now()
        self.db.commit()
        self.db.refresh(model)
        logger.info("Updated game: %s", game_id)
        return self.get_game(game_id)

    def delete_game(self, game_id: str) -> None:
        """Delete a game and all of its reviews.

        Raises:
            GameNotFoundError: If the game does not exist.
        """
        model = self._get_game_model(game_id)
        removed = (
            self.db.query(ReviewModel)
            .filter(ReviewModel.game_id == game_id)
            .delete(synchronize_session=False)
        )
        self.db.delete(model)
        self.db.commit()
        logger.info("Deleted game: %s (cascaded %d reviews)", game_id, removed)

    def pick_random_game(
        self, statuses: Iterable = (GameStatus.BACKLOG,)
    ) -> GameDetail:
        """Pick a game uniformly at random among the given statuses.

        Args:
            statuses: Status codes or labels to draw from.

        Returns:
            The chosen game.

        Raises:
            ValidationError: If a status is not recognised.
            GameNotFoundError: If no game has one of the statuses.
        """
        codes = sorted({GameStatus.parse(s).value for s in statuses})
        if not codes:
            raise ValidationError("At least one status is required")
        models = (
            self.db.query(GameModel)
            .filter(GameModel.status.in_(codes))
            .order_by(GameModel.game_id)
            .all()
        )
        if not models:
            raise GameNotFoundError(f"status in {codes}")
        return self._to_details([self.rng.choice(models)])[0]

    def search_games(
        self, title_filter: Optional[str] = None, direction=SortDirection.ASC
    ) -> List[GameDetail]:
        """Filter games by title substring and sort them by title.

        Args:
            title_filter: Case-insensitive substring; None or blank matches all.
            direction: "asc" (default) or "desc".

        Returns:
            Matching games ordered by (title, game_id).

        Raises:
            ValidationError: If the direction is not "asc" or "desc".
        """
        order = SortDirection.parse(direction)
        query = self.db.query(GameModel)
        if title_filter and title_filter.strip():
            query = query.filter(
                func.lower(GameModel.title).contains(
                    title_filter.strip().lower(), autoescape=True
                )
            )
        details = self._to_details(query.all())
        return sorted(
            details,
            key=lambda game: (game.title, game.game_id),
            reverse=order is SortDirection.DESC,
        )

    # --- Reviews ---

    def _get_review_model(self, review_id: str) -> ReviewModel:
        model = (
            self.db.query(ReviewModel)
            .filter(ReviewModel.review_id == review_id)
            .first()
        )
        if not model:
            raise ReviewNotFoundError(review_id)
        return model

    def _missing_references(self, game_id: str, user_id: str) -> List[str]:
        missing = []
        if not self.db.query(GameModel.game_id).filter(GameModel.game_id == game_id).first():
            missing.append(f"game '{game_id}'")
        if not self.db.query(UserModel.user_id).filter(UserModel.user_id == user_id).first():
            missing.append(f"user '{user_id}'")
        return missing

    def create_review(
        self, game_id: str, user_id: str, rating: int, comment: str = ""
    ) -> Review:
        """Create a review attributed to a user.

        The reference check and the insert run in one transaction; the
        foreign keys on the reviews table catch a game or user deleted in
        between.

        Args:
            game_id: ID of the reviewed game.
            user_id: ID of the author.
            rating: Integer score from 1 to 10.
            comment: Free text.

        Returns:
            The created Review.

        Raises:
            ValidationError: If the rating is invalid.
            ReferenceViolationError: If the game or user does not exist.
        """
        rating = validate_rating(rating)
        missing = self._missing_references(game_id, user_id)
        if missing:
            self.db.rollback()
            raise ReferenceViolationError(
                f"Review references missing {' and '.join(missing)}"
            )

        now = _now()
        model = ReviewModel(
            review_id=str(uuid.uuid4()),
            rating=rating,
            comment=comment or "",
            game_id=game_id,
            user_id=user_id,
            created_at=now,
            updated_at=now,
        )
        self.db.add(model)
        try:
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            missing = self._missing_references(game_id, user_id)
            if missing:
                raise ReferenceViolationError(
                    f"Review references missing {' and '.join(missing)}"
                ) from e
            raise ConstraintViolationError("Review rejected by the database") from e

        self.db.refresh(model)
        logger.info(
            "Created review %s for game %s by user %s", model.review_id, game_id, user_id
        )
        return model_to_review(model)

    def get_review(self, review_id: str) -> Review:
        """Read a review.

        Raises:
            ReviewNotFoundError: If the review does not exist.
        """
        return model_to_review(self._get_review_model(review_id))

    def list_reviews(self) -> List[Review]:
        models = (
            self.db.query(ReviewModel)
            .order_by(ReviewModel.created_at, ReviewModel.review_id)
            .all()
        )
        return [model_to_review(m) for m in models]

    def list_reviews_for_game(self, game_id: str) -> List[Review]:
        models = (
            self.db.query(ReviewModel)
            .filter(ReviewModel.game_id == game_id)
            .order_by(ReviewModel.created_at, ReviewModel.review_id)
            .all()
        )
        return [model_to_review(m) for m in models]

    def list_reviews_for_user(self, user_id: str) -> List[Review]:
        models = (
            self.db.query(ReviewModel)
            .filter(ReviewModel.user_id == user_id)
            .order_by(ReviewModel.created_at, ReviewModel.review_id)
            .all()
        )
        return [model_to_review(m) for m in models]

    def update_review(
        self,
        review_id: str,
        rating: Optional[int] = None,
        comment: Optional[str] = None,
    ) -> Review:
        """Update a review's rating and/or comment.

        Raises:
            ReviewNotFoundError: If the review does not exist.
            ValidationError: If the new rating is invalid.
        """
        model = self._get_review_model(review_id)
        if rating is not None:
            model.rating = validate_rating(rating)
        if comment is not None:
            model.comment = comment
        model.updated_at = _now()
        self.db.commit()
        self.db.refresh(model)
        logger.info("Updated review: %s", review_id)
        return model_to_review(model)

    def delete_review(self, review_id: str) -> None:
        """Delete a review.

        Raises:
            ReviewNotFoundError: If the review does not exist.
        """
        model = self._get_review_model(review_id)
        self.db.delete(model)
        self.db.commit()
        logger.info("Deleted review: %s", review_id)
