"""Bearer token issuance and validation.

Tokens are compact HS256 JWS strings. They are self-contained: validation
never reads the user table, so a deleted or edited user keeps a working token
until it expires.
"""

import logging
from datetime import datetime
from typing import Callable, Optional

import pytz
from jose import JWTError, jwt

from core.exceptions import GameReviewError, InvalidTokenError
from core.permissions import parse_roles
from schemas.token import TokenClaims, TokenSettings
from schemas.user import User

logger = logging.getLogger(__name__)


def _utc_now() -> datetime:
    return datetime.now(pytz.utc)


class TokenManager:
    """Issues and validates signed bearer tokens."""

    def __init__(
        self,
        settings: TokenSettings,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        """Initialize TokenManager.

        Args:
            settings: Resolved signing key, issuer, audience and lifetime.
            clock: Returns the current UTC time. It only drives issuance
                (`iat`, `nbf`, `exp`); validate() checks expiry and `nbf`
                against the wall clock, so a clock running ahead of real
                time yields tokens that are not yet valid.
        """
        self.settings = settings
        self._clock = clock or _utc_now

    def issue(self, user: User) -> str:
        """Create a signed token asserting the user's identity.

        Args:
            user: The authenticated user.

        Returns:
            Compact serialized token (header.payload.signature).
        """
        issued_at = self._clock()
        expires_at = issued_at + self.settings.lifetime
        claims = {
            "sub": str(user.user_id),
            "name": user.username,
            "roles": [role.value for role in user.roles],
            "iss": self.settings.issuer,
            "aud": self.settings.audience,
            "iat": int(issued_at.timestamp()),
            "nbf": int(issued_at.timestamp()),
            "exp": int(expires_at.timestamp()),
        }
        token = jwt.encode(
            claims, self.settings.signing_key, algorithm=self.settings.algorithm
        )
        logger.info("Issued token for user: %s", user.username)
        return token

    def validate(self, token: str) -> TokenClaims:
        """Verify a token and return its claims.

        Args:
            token: Compact serialized token.

        Returns:
            TokenClaims of the verified token.

        Raises:
            InvalidTokenError: On any failure (signature, issuer, audience,
                expiry, malformed payload). The reason is only logged.
        """
        try:
            payload = jwt.decode(
                token,
                self.settings.signing_key,
                algorithms=[self.settings.algorithm],
                audience=self.settings.audience,
                issuer=self.settings.issuer,
                options={
                    "require_sub": True,
                    "require_iat": True,
                    "require_exp": True,
                },
            )
            name = payload.get("name")
            if not name:
                raise JWTError("missing name claim")
            return TokenClaims(
                user_id=payload["sub"],
                username=name,
                roles=parse_roles(payload.get("roles") or []),
                issuer=payload["iss"],
                audience=payload["aud"],
                issued_at=datetime.fromtimestamp(payload["iat"], tz=pytz.utc),
                expires_at=datetime.fromtimestamp(payload["exp"], tz=pytz.utc),
            )
        except (
            JWTError,
            GameReviewError,
            AttributeError,
            KeyError,
            TypeError,
            ValueError,
        ) as e:
            logger.debug("Token rejected: %s", e)
            raise InvalidTokenError() from None
