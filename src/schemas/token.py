"""Token schema definitions.

This module defines the signing settings handed to the TokenManager and the
claims it yields after validation.
"""

from datetime import datetime, timedelta
from typing import List

from pydantic import BaseModel, ConfigDict, Field

from core.permissions import Role


class TokenSettings(BaseModel):
    """Resolved signing settings. Built once before the app starts."""

    model_config = ConfigDict(frozen=True)

    signing_key: bytes = Field(description="Symmetric HMAC signing secret.")
    issuer: str = Field(description="Value of the `iss` claim.")
    audience: str = Field(description="Value of the `aud` claim.")
    lifetime: timedelta = Field(
        default=timedelta(hours=24),
        description="Time between issuance and expiry.",
    )
    algorithm: str = Field(default="HS256")


class TokenClaims(BaseModel):
    """Identity asserted by a validated bearer token."""

    model_config = ConfigDict(frozen=True)

    user_id: str
    username: str
    roles: List[Role] = Field(default_factory=list)
    issuer: str
    audience: str
    issued_at: datetime
    expires_at: datetime


class TokenResponse(BaseModel):
    token: str
