"""User management routes."""

from typing import List

from fastapi import APIRouter, Query, status

from core.dependencies import CatalogManagerDep, CurrentClaimsDep, UserManagerDep
from core.exceptions import UserNotFoundError
from core.permissions import (
    Capability,
    require_capability,
    require_owner_or_capability,
)
from schemas.review import Review
from schemas.user import UpdateUserRequest, User

router = APIRouter(prefix="/api/users", tags=["User"])


@router.get("", response_model=List[User], summary="List users")
def list_users(claims: CurrentClaimsDep, user_manager: UserManagerDep) -> List[User]:
    require_capability(claims.roles, Capability.MANAGE_USERS)
    return user_manager.list_users()


@router.get("/by-email", response_model=User, summary="Find a user by email")
def find_user_by_email(
    claims: CurrentClaimsDep,
    user_manager: UserManagerDep,
    email: str = Query(..., min_length=1),
) -> User:
    require_capability(claims.roles, Capability.MANAGE_USERS)
    user = user_manager.find_by_email(email)
    if user is None:
        raise UserNotFoundError(email)
    return user


@router.get("/{user_id}", response_model=User, summary="Get a user")
def get_user(
    user_id: str, claims: CurrentClaimsDep, user_manager: UserManagerDep
) -> User:
    """Get user information by user_id.

    Raises:
        UserNotFoundError: If user not found.
    """
    user = user_manager.get_user_by_id(user_id)
    if user is None:
        raise UserNotFoundError(user_id)
    return user


@router.put("/{user_id}", response_model=User, summary="Update a user")
def update_user(
    user_id: str,
    req: UpdateUserRequest,
    claims: CurrentClaimsDep,
    user_manager: UserManagerDep,
) -> User:
    """Update a profile.

    Permission requirements:
    - Users can update their own username, email and password
    - Changing roles, or anyone else's profile, needs manage_users
    """
    require_owner_or_capability(
        claims.user_id, user_id, claims.roles, Capability.MANAGE_USERS
    )
    if req.roles is not None:
        require_capability(claims.roles, Capability.MANAGE_USERS)
    return user_manager.update_user(
        user_id,
        username=req.username,
        email=req.email,
        password=req.password,
        roles=req.roles,
    )


@router.delete(
    "/{user_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Delete a user"
)
def delete_user(
    user_id: str, claims: CurrentClaimsDep, user_manager: UserManagerDep
) -> None:
    """Delete a user and every review they wrote."""
    require_owner_or_capability(
        claims.user_id, user_id, claims.roles, Capability.MANAGE_USERS
    )
    user_manager.delete_user(user_id)


@router.get("/{user_id}/reviews", response_model=List[Review], summary="User reviews")
def list_user_reviews(
    user_id: str, user_manager: UserManagerDep, catalog: CatalogManagerDep
) -> List[Review]:
    if user_manager.get_user_by_id(user_id) is None:
        raise UserNotFoundError(user_id)
    return catalog.list_reviews_for_user(user_id)
