"""Conversions between ORM models and pydantic schemas."""

from models.game import GameModel
from models.review import ReviewModel
from models.user import UserModel
from core.permissions import parse_roles
from schemas.game import GameDetail, GameStatus
from schemas.review import Review
from schemas.user import UserRecord


def model_to_user_record(model: UserModel) -> UserRecord:
    return UserRecord(
        user_id=model.user_id,
        username=model.username,
        email=model.email,
        password_hash=model.password_hash,
        roles=parse_roles(model.roles or []),
        created_at=model.created_at,
        updated_at=model.updated_at,
    )


def user_record_to_model(record: UserRecord) -> UserModel:
    return UserModel(
        user_id=record.user_id,
        username=record.username,
        email=record.email,
        password_hash=record.password_hash,
        roles=[role.value for role in record.roles],
        created_at=record.created_at,
        updated_at=record.updated_at,
    )


def model_to_game_detail(
    model: GameModel, average_rating: float = 0.0, review_count: int = 0
) -> GameDetail:
    return GameDetail(
        game_id=model.game_id,
        title=model.title,
        platform=model.platform,
        genre=model.genre,
        status=GameStatus(model.status),
        release_date=model.release_date,
        created_at=model.created_at,
        updated_at=model.updated_at,
        average_rating=average_rating,
        review_count=review_count,
    )


def model_to_review(model: ReviewModel) -> Review:
    return Review(
        review_id=model.review_id,
        rating=model.rating,
        comment=model.comment or "",
        game_id=model.game_id,
        user_id=model.user_id,
        created_at=model.created_at,
        updated_at=model.updated_at,
    )
