"""Review routes.

The author of a new review is always the user named by the bearer token.
"""

from typing import List

from fastapi import APIRouter, status

from core.dependencies import CatalogManagerDep, CurrentClaimsDep
from core.permissions import (
    Capability,
    require_capability,
    require_owner_or_capability,
)
from schemas.review import CreateReviewRequest, Review, UpdateReviewRequest

router = APIRouter(prefix="/api/reviews", tags=["Review"])


@router.get("", response_model=List[Review], summary="List reviews")
def list_reviews(catalog: CatalogManagerDep) -> List[Review]:
    return catalog.list_reviews()


@router.post(
    "",
    response_model=Review,
    status_code=status.HTTP_201_CREATED,
    summary="Post a review",
)
def create_review(
    req: CreateReviewRequest, claims: CurrentClaimsDep, catalog: CatalogManagerDep
) -> Review:
    """Post a review for a game as the current user.

    Raises:
        ValidationError: If the rating is outside 1-10.
        ReferenceViolationError: If the game, or the token's user, no longer
            exists.
    """
    require_capability(claims.roles, Capability.WRITE_REVIEW)
    return catalog.create_review(
        game_id=req.game_id,
        user_id=claims.user_id,
        rating=req.rating,
        comment=req.comment,
    )


@router.get("/{review_id}", response_model=Review, summary="Get a review")
def get_review(review_id: str, catalog: CatalogManagerDep) -> Review:
    return catalog.get_review(review_id)


@router.put("/{review_id}", response_model=Review, summary="Update a review")
def update_review(
    review_id: str,
    req: UpdateReviewRequest,
    claims: CurrentClaimsDep,
    catalog: CatalogManagerDep,
) -> Review:
    """Update a review. Authors edit their own; moderators edit any."""
    review = catalog.get_review(review_id)
    require_owner_or_capability(
        claims.user_id, review.user_id, claims.roles, Capability.MODERATE_REVIEWS
    )
    return catalog.update_review(review_id, rating=req.rating, comment=req.comment)


@router.delete(
    "/{review_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Delete a review"
)
def delete_review(
    review_id: str, claims: CurrentClaimsDep, catalog: CatalogManagerDep
) -> None:
    review = catalog.get_review(review_id)
    require_owner_or_capability(
        claims.user_id, review.user_id, claims.roles, Capability.MODERATE_REVIEWS
    )
    catalog.delete_review(review_id)
