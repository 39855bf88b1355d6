"""User schema definitions.

This module defines the public User model, the internal record carrying the
password hash, and the request bodies of the auth and user routes.
"""

import uuid
from datetime import datetime
from typing import List, Optional

import pytz
from pydantic import BaseModel, Field

from core.permissions import Role


class User(BaseModel):
    """Public view of a user. Never carries the password hash."""

    user_id: str = Field(
        description="The unique identifier for the user.",
        default_factory=lambda: str(uuid.uuid4()),
        frozen=True,
    )
    username: str = Field(description="Unique login name.")
    email: str = Field(description="Contact email address.")
    roles: List[Role] = Field(
        default_factory=list,
        description="Roles held by the user; may be empty.",
    )
    created_at: str = Field(
        description="The time when the user registered.",
        default_factory=lambda: datetime.now(pytz.utc).isoformat(),
    )
    updated_at: Optional[str] = Field(
        default=None,
        description="The time of the last profile update.",
    )


class UserRecord(User):
    """Stored user including the bcrypt hash. Internal to UserManager."""

    password_hash: str = Field(repr=False)

    def to_public(self) -> User:
        return User.model_validate(self.model_dump(exclude={"password_hash"}))


class RegisterRequest(BaseModel):
    username: str = Field(min_length=1, max_length=50)
    password: str = Field(min_length=1)
    email: str = Field(min_length=1, max_length=255)
    admin_token: Optional[str] = Field(
        default=None,
        description="Grants the admin role when it matches ADMIN_TOKEN.",
    )


class RegisterResponse(BaseModel):
    success: bool = True
    message: str = "User registered successfully"
    user_id: str


class LoginRequest(BaseModel):
    username: str
    password: str


class UpdateUserRequest(BaseModel):
    """Partial profile update. Omitted fields are left unchanged."""

    username: Optional[str] = Field(default=None, min_length=1, max_length=50)
    email: Optional[str] = Field(default=None, min_length=1, max_length=255)
    password: Optional[str] = Field(default=None, min_length=1)
    roles: Optional[List[Role]] = None


class CurrentUserResponse(BaseModel):
    user: User
