"""Game catalog routes.

Reads are public. Writes need the manage_games capability.
"""

from typing import List, Optional

from fastapi import APIRouter, Query, status

from core.dependencies import CatalogManagerDep, CurrentClaimsDep
from core.permissions import Capability, require_capability
from schemas.game import (
    AverageRatingResponse,
    CreateGameRequest,
    GameDetail,
    GameStatus,
    UpdateGameRequest,
)
from schemas.review import Review

router = APIRouter(prefix="/api/games", tags=["Game"])


@router.get("", response_model=List[GameDetail], summary="List games")
def list_games(catalog: CatalogManagerDep) -> List[GameDetail]:
    return catalog.list_games()


@router.post(
    "",
    response_model=GameDetail,
    status_code=status.HTTP_201_CREATED,
    summary="Create a game",
)
def create_game(
    req: CreateGameRequest, claims: CurrentClaimsDep, catalog: CatalogManagerDep
) -> GameDetail:
    require_capability(claims.roles, Capability.MANAGE_GAMES)
    return catalog.create_game(
        title=req.title,
        platform=req.platform,
        genre=req.genre,
        status=req.status,
        release_date=req.release_date,
    )


@router.get("/genre/{genre}", response_model=List[GameDetail], summary="Games by genre")
def list_games_by_genre(genre: str, catalog: CatalogManagerDep) -> List[GameDetail]:
    return catalog.list_games_by_genre(genre)


@router.get(
    "/status/{game_status}", response_model=List[GameDetail], summary="Games by status"
)
def list_games_by_status(
    game_status: str, catalog: CatalogManagerDep
) -> List[GameDetail]:
    return catalog.list_games_by_status(game_status)


@router.get("/random", response_model=GameDetail, summary="Pick a random game")
def pick_random_game(
    catalog: CatalogManagerDep,
    game_status: List[str] = Query(
        default=[GameStatus.BACKLOG.value], alias="status"
    ),
) -> GameDetail:
    """Pick uniformly among games whose status is one of `status` (default Backlog).

    Raises:
        GameNotFoundError: If no game matches; mapped to 404.
    """
    return catalog.pick_random_game(game_status)


@router.get("/search", response_model=List[GameDetail], summary="Search games")
def search_games(
    catalog: CatalogManagerDep,
    title: Optional[str] = None,
    sort: str = "asc",
) -> List[GameDetail]:
    return catalog.search_games(title_filter=title, direction=sort)


@router.get("/{game_id}", response_model=GameDetail, summary="Get a game")
def get_game(game_id: str, catalog: CatalogManagerDep) -> GameDetail:
    return catalog.get_game(game_id)


@router.put("/{game_id}", response_model=GameDetail, summary="Update a game")
def update_game(
    game_id: str,
    req: UpdateGameRequest,
    claims: CurrentClaimsDep,
    catalog: CatalogManagerDep,
) -> GameDetail:
    require_capability(claims.roles, Capability.MANAGE_GAMES)
    return catalog.update_game(
        game_id,
        title=req.title,
        platform=req.platform,
        genre=req.genre,
        status=req.status,
        release_date=req.release_date,
    )


@router.delete(
    "/{game_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Delete a game"
)
def delete_game(
    game_id: str, claims: CurrentClaimsDep, catalog: CatalogManagerDep
) -> None:
    require_capability(claims.roles, Capability.MANAGE_GAMES)
    catalog.delete_game(game_id)


@router.get(
    "/{game_id}/average-rating",
    response_model=AverageRatingResponse,
    summary="Average rating of a game",
)
def get_average_rating(game_id: str, catalog: CatalogManagerDep) -> AverageRatingResponse:
    game = catalog.get_game(game_id)
    return AverageRatingResponse(
        game_id=game.game_id,
        average_rating=game.average_rating,
        review_count=game.review_count,
    )


@router.get("/{game_id}/reviews", response_model=List[Review], summary="Game reviews")
def list_game_reviews(game_id: str, catalog: CatalogManagerDep) -> List[Review]:
    catalog.get_game(game_id)
    return catalog.list_reviews_for_game(game_id)
