"""Tests for games, reviews and rating aggregation."""

import random
import uuid

import pytest
from hypothesis import HealthCheck, given, settings, strategies as st
from sqlalchemy.exc import IntegrityError

from core.exceptions import (
    ConstraintViolationError,
    GameNotFoundError,
    ReferenceViolationError,
    ReviewNotFoundError,
    ValidationError,
)
from models.review import ReviewModel
from schemas.game import GameStatus
from utils.catalog_manager import CatalogManager, validate_rating
from utils.user_manager import UserManager

from conftest import TEST_BCRYPT_ROUNDS


def _add_game(catalog, title="Minecraft", status=GameStatus.BACKLOG, genre="Sandbox"):
    return catalog.create_game(title=title, platform="PC", genre=genre, status=status)


@pytest.fixture
def game_id(catalog):
    return _add_game(catalog).game_id


def test_average_rating_is_plain_mean(catalog, user_manager, game_id, alice_id):
    bob = user_manager.register("bob", "pw", "bob@example.com")
    carol = user_manager.register("carol", "pw", "carol@example.com")
    for user_id, rating in ((alice_id, 8), (bob, 6), (carol, 10)):
        catalog.create_review(game_id, user_id, rating)

    assert catalog.average_rating(game_id) == 8.0
    detail = catalog.get_game(game_id)
    assert detail.average_rating == 8.0
    assert detail.review_count == 3


def test_average_rating_keeps_fraction(catalog, user_manager, game_id, alice_id):
    catalog.create_review(game_id, alice_id, 7)
    catalog.create_review(game_id, alice_id, 8)
    assert catalog.average_rating(game_id) == 7.5


def test_unreviewed_game_has_zero_average(catalog, game_id):
    assert catalog.average_rating(game_id) == 0
    assert catalog.get_game(game_id).review_count == 0


def test_average_rating_of_missing_game(catalog):
    with pytest.raises(GameNotFoundError):
        catalog.average_rating("missing")


@settings(
    max_examples=20,
    deadline=None,
    suppress_health_check=[HealthCheck.function_scoped_fixture],
)
@given(ratings=st.lists(st.integers(min_value=1, max_value=10), max_size=8))
def test_average_matches_current_reviews(fresh_db, ratings):
    db = fresh_db()
    users = UserManager(db, bcrypt_rounds=TEST_BCRYPT_ROUNDS)
    catalog = CatalogManager(db)
    author = users.register("author", "pw", "author@example.com")
    game = _add_game(catalog)

    reviews = [catalog.create_review(game.game_id, author, r) for r in ratings]
    if reviews:
        catalog.delete_review(reviews[0].review_id)
        ratings = ratings[1:]

    expected = sum(ratings) / len(ratings) if ratings else 0.0
    assert catalog.average_rating(game.game_id) == pytest.approx(expected)


def test_review_requires_existing_game(catalog, alice_id):
    with pytest.raises(ReferenceViolationError):
        catalog.create_review("no-such-game", alice_id, 5)
    assert catalog.list_reviews() == []


def test_review_requires_existing_user(catalog, game_id):
    with pytest.raises(ReferenceViolationError):
        catalog.create_review(game_id, "no-such-user", 5)
    assert catalog.list_reviews() == []


@pytest.mark.parametrize("rating", [0, 11, -3, True, "5", 5.0, None])
def test_invalid_ratings_are_rejected(catalog, game_id, alice_id, rating):
    with pytest.raises(ValidationError):
        catalog.create_review(game_id, alice_id, rating)
    assert catalog.list_reviews() == []


@pytest.mark.parametrize("rating", [1, 10])
def test_rating_bounds_are_inclusive(catalog, game_id, alice_id, rating):
    review = catalog.create_review(game_id, alice_id, rating, "ok")
    assert review.rating == rating
    assert review.comment == "ok"


@given(rating=st.integers())
def test_validate_rating_accepts_exactly_one_to_ten(rating):
    if 1 <= rating <= 10:
        assert validate_rating(rating) == rating
    else:
        with pytest.raises(ValidationError):
            validate_rating(rating)


def test_foreign_keys_are_enforced_by_storage(db, game_id):
    db.add(
        ReviewModel(
            review_id=str(uuid.uuid4()),
            rating=5,
            comment="",
            game_id=game_id,
            user_id="ghost",
            created_at="2024-01-01T00:00:00+00:00",
        )
    )
    with pytest.raises(IntegrityError):
        db.commit()
    db.rollback()


def test_rating_range_is_enforced_by_storage(db, game_id, alice_id):
    db.add(
        ReviewModel(
            review_id=str(uuid.uuid4()),
            rating=42,
            comment="",
            game_id=game_id,
            user_id=alice_id,
            created_at="2024-01-01T00:00:00+00:00",
        )
    )
    with pytest.raises(IntegrityError):
        db.commit()
    db.rollback()


def test_game_deleted_between_check_and_insert(catalog, game_id, alice_id, monkeypatch):
    real_check = catalog._missing_references
    calls = []

    def stale_check(game_id_, user_id_):
        calls.append(game_id_)
        # The check ran before another request deleted the game
        if len(calls) == 1:
            return []
        return real_check(game_id_, user_id_)

    catalog.delete_game(game_id)
    monkeypatch.setattr(catalog, "_missing_references", stale_check)

    with pytest.raises(ReferenceViolationError):
        catalog.create_review(game_id, alice_id, 5)
    assert len(calls) == 2
    assert catalog.db.query(ReviewModel).count() == 0


def test_unexplained_integrity_error_is_constraint_violation(
    catalog, game_id, alice_id, monkeypatch
):
    catalog.delete_game(game_id)
    monkeypatch.setattr(catalog, "_missing_references", lambda g, u: [])

    with pytest.raises(ConstraintViolationError):
        catalog.create_review(game_id, alice_id, 5)
    assert catalog.db.query(ReviewModel).count() == 0


def test_search_filters_and_sorts_descending(catalog):
    for title in ("Warcraft", "Minecraft", "Starwars"):
        _add_game(catalog, title=title)

    titles = [g.title for g in catalog.search_games("War", "desc")]
    assert titles == ["Warcraft", "Starwars"]


def test_search_without_filter_sorts_ascending(catalog):
    for title in ("Zelda", "Astroneer", "Minecraft"):
        _add_game(catalog, title=title)

    assert [g.title for g in catalog.search_games()] == [
        "Astroneer",
        "Minecraft",
        "Zelda",
    ]
    assert [g.title for g in catalog.search_games("  ", "asc")] == [
        "Astroneer",
        "Minecraft",
        "Zelda",
    ]


def test_search_treats_wildcards_literally(catalog):
    _add_game(catalog, title="100% Orange Juice")
    _add_game(catalog, title="Portal")
    assert [g.title for g in catalog.search_games("%")] == ["100% Orange Juice"]


def test_search_rejects_unknown_direction(catalog):
    with pytest.raises(ValidationError):
        catalog.search_games("x", "sideways")


def test_random_pick_only_draws_from_requested_statuses(catalog):
    backlog = {_add_game(catalog, title=f"B{i}").game_id for i in range(3)}
    _add_game(catalog, title="Done", status=GameStatus.DONE)

    for _ in range(20):
        assert catalog.pick_random_game().game_id in backlog


def test_random_pick_on_empty_subset(catalog):
    _add_game(catalog, status=GameStatus.DONE)
    with pytest.raises(GameNotFoundError):
        catalog.pick_random_game([GameStatus.IN_PROGRESS])


def test_random_pick_is_reproducible_with_seed(db):
    catalog = CatalogManager(db, rng=random.Random(7))
    for i in range(5):
        _add_game(catalog, title=f"G{i}")
    first = [catalog.pick_random_game().game_id for _ in range(5)]

    catalog.rng = random.Random(7)
    assert [catalog.pick_random_game().game_id for _ in range(5)] == first


def test_status_accepts_codes_and_labels(catalog):
    game = _add_game(catalog, status="Pågående")
    assert game.status is GameStatus.IN_PROGRESS
    assert game.status_label == "Pågående"
    assert game.model_dump()["status_label"] == "Pågående"

    assert [g.game_id for g in catalog.list_games_by_status("InProgress")] == [game.game_id]
    assert [g.game_id for g in catalog.list_games_by_status("Pågående")] == [game.game_id]
    assert catalog.list_games_by_status(GameStatus.DONE) == []


def test_unknown_status_is_rejected(catalog):
    with pytest.raises(ValidationError):
        _add_game(catalog, status="Abandoned")


def test_list_games_by_genre(catalog):
    _add_game(catalog, title="Doom", genre="Shooter")
    _add_game(catalog, title="Tetris", genre="Puzzle")
    assert [g.title for g in catalog.list_games_by_genre("Puzzle")] == ["Tetris"]


@pytest.mark.parametrize(
    "fields",
    [
        {"title": ""},
        {"title": "x" * 101},
        {"platform": "  "},
        {"genre": ""},
    ],
)
def test_create_game_validation(catalog, fields):
    values = {"title": "Doom", "platform": "PC", "genre": "Shooter"}
    values.update(fields)
    with pytest.raises(ValidationError):
        catalog.create_game(**values)
    assert catalog.list_games() == []


def test_title_at_max_length_is_accepted(catalog):
    assert len(_add_game(catalog, title="x" * 100).title) == 100


def test_update_game_is_all_or_nothing(catalog, game_id):
    with pytest.raises(ValidationError):
        catalog.update_game(game_id, title="Renamed", status="Abandoned")
    assert catalog.get_game(game_id).title == "Minecraft"

    updated = catalog.update_game(game_id, title="Renamed", status="Klar")
    assert updated.title == "Renamed"
    assert updated.status is GameStatus.DONE


def test_update_missing_game(catalog):
    with pytest.raises(GameNotFoundError):
        catalog.update_game("missing", title="x")


def test_delete_game_cascades_reviews(catalog, game_id, alice_id):
    other = _add_game(catalog, title="Other").game_id
    catalog.create_review(game_id, alice_id, 4)
    kept = catalog.create_review(other, alice_id, 9)

    catalog.delete_game(game_id)

    with pytest.raises(GameNotFoundError):
        catalog.get_game(game_id)
    assert [r.review_id for r in catalog.list_reviews()] == [kept.review_id]


def test_delete_user_cascades_reviews(catalog, user_manager, game_id, alice_id):
    bob = user_manager.register("bob", "pw", "bob@example.com")
    catalog.create_review(game_id, alice_id, 2)
    catalog.create_review(game_id, bob, 10)

    user_manager.delete_user(alice_id)

    assert catalog.list_reviews_for_user(alice_id) == []
    assert catalog.average_rating(game_id) == 10.0


def test_review_listings(catalog, user_manager, game_id, alice_id):
    bob = user_manager.register("bob", "pw", "bob@example.com")
    other = _add_game(catalog, title="Other").game_id
    catalog.create_review(game_id, alice_id, 3)
    catalog.create_review(other, bob, 6)

    assert [r.user_id for r in catalog.list_reviews_for_game(game_id)] == [alice_id]
    assert [r.game_id for r in catalog.list_reviews_for_user(bob)] == [other]
    assert len(catalog.list_reviews()) == 2


def test_update_review(catalog, game_id, alice_id):
    review = catalog.create_review(game_id, alice_id, 3, "meh")

    updated = catalog.update_review(review.review_id, rating=9)
    assert updated.rating == 9
    assert updated.comment == "meh"
    assert catalog.average_rating(game_id) == 9.0

    with pytest.raises(ValidationError):
        catalog.update_review(review.review_id, rating=11)
    assert catalog.get_review(review.review_id).rating == 9


def test_delete_review(catalog, game_id, alice_id):
    review = catalog.create_review(game_id, alice_id, 3)
    catalog.delete_review(review.review_id)

    with pytest.raises(ReviewNotFoundError):
        catalog.get_review(review.review_id)
    with pytest.raises(ReviewNotFoundError):
        catalog.delete_review(review.review_id)
