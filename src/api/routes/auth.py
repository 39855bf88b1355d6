"""Authentication routes.

This module handles HTTP endpoints for user registration, login, and the
current-identity lookup.
"""

import logging
import secrets

from fastapi import APIRouter, status

import config
from core.dependencies import CurrentClaimsDep, TokenManagerDep, UserManagerDep
from core.exceptions import PermissionDeniedError, UserNotFoundError
from core.permissions import Role
from schemas.token import TokenResponse
from schemas.user import (
    CurrentUserResponse,
    LoginRequest,
    RegisterRequest,
    RegisterResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["Auth"])


@router.post(
    "/register",
    response_model=RegisterResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register a user",
)
def register(req: RegisterRequest, user_manager: UserManagerDep) -> RegisterResponse:
    """Register a new user.

    A request carrying an admin_token equal to ADMIN_TOKEN registers an
    admin; everyone else gets the default player role.

    Args:
        req: Registration request with username, password and email.
        user_manager: Injected UserManager instance.

    Returns:
        RegisterResponse with the new user_id.

    Raises:
        PermissionDeniedError: If an admin_token is given and does not match.
        DuplicateUsernameError: If the username is taken.
    """
    roles = None
    if req.admin_token is not None:
        if not config.ADMIN_TOKEN or not secrets.compare_digest(
            req.admin_token, config.ADMIN_TOKEN
        ):
            logger.warning("Rejected admin registration for username: %s", req.username)
            raise PermissionDeniedError("Invalid admin token")
        roles = [Role.ADMIN]

    user_id = user_manager.register(
        username=req.username,
        password=req.password,
        email=req.email,
        roles=roles,
    )
    return RegisterResponse(user_id=user_id)


@router.post("/login", response_model=TokenResponse, summary="Log in")
def login(
    req: LoginRequest,
    user_manager: UserManagerDep,
    tokens: TokenManagerDep,
) -> TokenResponse:
    """Login with username and password.

    Raises:
        InvalidCredentialsError: If the username is unknown or the password is
            wrong; both produce the same 401 response.
    """
    user = user_manager.authenticate(req.username, req.password)
    return TokenResponse(token=tokens.issue(user))


@router.post("/logout", summary="Log out")
def logout() -> dict:
    """Logout endpoint.

    Note: Since we're using stateless JWT tokens, logout is handled
    client-side by removing the token. This endpoint exists for API
    consistency.
    """
    return {"success": True, "message": "Logged out successfully"}


@router.get("/me", response_model=CurrentUserResponse, summary="Current user")
def get_current_user_info(
    claims: CurrentClaimsDep, user_manager: UserManagerDep
) -> CurrentUserResponse:
    """Get the stored profile of the token's user.

    Raises:
        UserNotFoundError: If the user was deleted after the token was issued.
    """
    user = user_manager.get_user_by_id(claims.user_id)
    if user is None:
        raise UserNotFoundError(claims.user_id)
    return CurrentUserResponse(user=user)
