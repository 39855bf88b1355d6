"""Dependency injection module for FastAPI.

This module is the single composition point: it builds managers from a
request-scoped DB session and the resolved settings, and resolves the bearer
token of a request into validated claims.
"""

from functools import lru_cache
from typing import Annotated

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

import config
from core.database import get_db
from core.exceptions import InvalidTokenError
from schemas.token import TokenClaims
from utils import catalog_manager
from utils import token_manager
from utils import user_manager

# auto_error=False so a missing header goes through the same InvalidTokenError
# path as a bad token
security = HTTPBearer(auto_error=False)


@lru_cache(maxsize=1)
def get_token_manager() -> token_manager.TokenManager:
    """Get the TokenManager built from environment settings.

    Returns:
        TokenManager instance (cached; it holds no mutable state).
    """
    return token_manager.TokenManager(config.get_token_settings())


def get_user_manager(db: Session = Depends(get_db)) -> user_manager.UserManager:
    """Get UserManager instance with request-scoped DB session.

    Args:
        db: Database session.

    Returns:
        UserManager instance.
    """
    return user_manager.UserManager(db, bcrypt_rounds=config.BCRYPT_ROUNDS)


def get_catalog_manager(
    db: Session = Depends(get_db),
) -> catalog_manager.CatalogManager:
    """Get CatalogManager instance with request-scoped DB session."""
    return catalog_manager.CatalogManager(db)


TokenManagerDep = Annotated[token_manager.TokenManager, Depends(get_token_manager)]


def get_current_claims(
    tokens: TokenManagerDep,
    credentials: HTTPAuthorizationCredentials = Depends(security),
) -> TokenClaims:
    """Validate the Authorization: Bearer header.

    Args:
        tokens: Injected TokenManager.
        credentials: Parsed bearer credentials, None when absent.

    Returns:
        Claims of the validated token.

    Raises:
        InvalidTokenError: If the header is missing or the token is invalid.
    """
    if credentials is None or credentials.scheme.lower() != "bearer":
        raise InvalidTokenError()
    return tokens.validate(credentials.credentials)


# Type aliases for dependency injection
UserManagerDep = Annotated[user_manager.UserManager, Depends(get_user_manager)]
CatalogManagerDep = Annotated[
    catalog_manager.CatalogManager, Depends(get_catalog_manager)
]
CurrentClaimsDep = Annotated[TokenClaims, Depends(get_current_claims)]
