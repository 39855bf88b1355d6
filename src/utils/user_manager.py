"""User management utilities.

This module provides the credential store: user storage, password hashing,
authentication, and profile updates.
"""

import logging
from datetime import datetime
from typing import Dict, Iterable, List, Optional

import bcrypt
import pytz
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from config import BCRYPT_ROUNDS
from core.exceptions import (
    ConstraintViolationError,
    DuplicateUsernameError,
    InvalidCredentialsError,
    UserNotFoundError,
    ValidationError,
)
from core.permissions import DEFAULT_ROLES, Role, parse_roles
from models.review import ReviewModel
from models.user import UserModel
from schemas.user import User, UserRecord
from utils.converters import model_to_user_record, user_record_to_model

logger = logging.getLogger(__name__)

# bcrypt only looks at the first 72 bytes of a password
BCRYPT_MAX_PASSWORD_BYTES = 72

# Hashes compared against when the username is unknown, keyed by cost factor
_dummy_hashes: Dict[int, bytes] = {}


def _password_bytes(password: str) -> bytes:
    if isinstance(password, bytes):
        password_bytes = password
    else:
        password_bytes = str(password).encode("utf-8")
    return password_bytes[:BCRYPT_MAX_PASSWORD_BYTES]


def _require_text(value: Optional[str], field: str) -> str:
    if value is None or not str(value).strip():
        raise ValidationError(f"{field} is required")
    return str(value).strip()


def _validate_email(email: Optional[str]) -> str:
    email = _require_text(email, "email")
    if "@" not in email:
        raise ValidationError("email must be a valid email address")
    return email


class UserManager:
    """Manages user data persistence and operations using SQLAlchemy."""

    def __init__(self, db: Session, bcrypt_rounds: int = BCRYPT_ROUNDS):
        """Initialize UserManager.

        Args:
            db: SQLAlchemy Session.
            bcrypt_rounds: bcrypt cost factor used for new hashes.
        """
        self.db = db
        self.bcrypt_rounds = bcrypt_rounds

    def hash_password(self, password: str) -> str:
        """Hash a password using bcrypt with a per-record salt.

        Args:
            password: Plain text password.

        Returns:
            Hashed password (bcrypt hash string).
        """
        salt = bcrypt.gensalt(rounds=self.bcrypt_rounds)
        return bcrypt.hashpw(_password_bytes(password), salt).decode("utf-8")

    def verify_password(self, plain_password: str, hashed_password: str) -> bool:
        """Verify a password against a bcrypt hash.

        Args:
            plain_password: Plain text password to verify.
            hashed_password: Bcrypt hash string to verify against.

        Returns:
            True if password matches, False otherwise (including malformed
            hashes).
        """
        if isinstance(hashed_password, str):
            hash_bytes = hashed_password.encode("utf-8")
        else:
            hash_bytes = hashed_password
        try:
            return bcrypt.checkpw(_password_bytes(plain_password), hash_bytes)
        except ValueError:
            logger.warning("Stored password hash is malformed")
            return False

    def _dummy_hash(self) -> bytes:
        if self.bcrypt_rounds not in _dummy_hashes:
            _dummy_hashes[self.bcrypt_rounds] = bcrypt.hashpw(
                b"dummy-password", bcrypt.gensalt(rounds=self.bcrypt_rounds)
            )
        return _dummy_hashes[self.bcrypt_rounds]

    def _get_model(self, user_id: str) -> UserModel:
        model = self.db.query(UserModel).filter(UserModel.user_id == user_id).first()
        if not model:
            raise UserNotFoundError(user_id)
        return model

    def _username_taken(self, username: str, exclude_user_id: Optional[str] = None) -> bool:
        query = self.db.query(UserModel.user_id).filter(UserModel.username == username)
        if exclude_user_id:
            query = query.filter(UserModel.user_id != exclude_user_id)
        return query.first() is not None

    def _commit_user_write(
        self, username: str, exclude_user_id: Optional[str] = None
    ) -> None:
        """Commit, translating a constraint failure into the error taxonomy."""
        try:
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            if self._username_taken(username, exclude_user_id):
                raise DuplicateUsernameError(username) from e
            raise ConstraintViolationError("User write rejected by the database") from e

    def register(
        self,
        username: str,
        password: str,
        email: str,
        roles: Optional[Iterable[Role]] = None,
    ) -> str:
        """Create a new user.

        Args:
            username: Username for the new user.
            password: Plain text password.
            email: Email address.
            roles: Roles to grant; defaults to the player role.

        Returns:
            The new user's ID.

        Raises:
            ValidationError: If a required field is blank or a role is unknown.
            DuplicateUsernameError: If username already exists.
        """
        username = _require_text(username, "username")
        if password is None or password == "":
            raise ValidationError("password is required")
        email = _validate_email(email)
        role_list = parse_roles(DEFAULT_ROLES if roles is None else roles)

        if self._username_taken(username):
            raise DuplicateUsernameError(username)

        record = UserRecord(
            username=username,
            email=email,
            password_hash=self.hash_password(password),
            roles=role_list,
        )
        self.db.add(user_record_to_model(record))
        # Two requests may both pass the check above; the unique constraint
        # on users.username decides which one wins.
        self._commit_user_write(username)

        logger.info("Registered user: %s (id=%s)", username, record.user_id)
        return record.user_id

    def authenticate(self, username: str, password: str) -> User:
        """Check a username/password pair.

        Args:
            username: Username to authenticate.
            password: Plain text password.

        Returns:
            The authenticated User.

        Raises:
            InvalidCredentialsError: If the user is unknown or the password
                does not match. Both cases are indistinguishable.
        """
        model = self.db.query(UserModel).filter(UserModel.username == username).first()
        if model is None:
            # Spend the same bcrypt work as a real check
            self.verify_password(password or "", self._dummy_hash())
            logger.info("Failed login attempt for username: %s", username)
            raise InvalidCredentialsError()

        if not self.verify_password(password or "", model.password_hash):
            logger.info("Failed login attempt for username: %s", username)
            raise InvalidCredentialsError()

        return model_to_user_record(model).to_public()

    def get_user_by_id(self, user_id: str) -> Optional[User]:
        """Get a user by user ID.

        Args:
            user_id: User ID to look up.

        Returns:
            User object if found, None otherwise.
        """
        model = self.db.query(UserModel).filter(UserModel.user_id == user_id).first()
        if model:
            return model_to_user_record(model).to_public()
        return None

    def get_user_by_username(self, username: str) -> Optional[User]:
        model = self.db.query(UserModel).filter(UserModel.username == username).first()
        if model:
            return model_to_user_record(model).to_public()
        return None

    def find_by_email(self, email: str) -> Optional[User]:
        """Get the first user registered with an email address.

        Args:
            email: Email address to look up.

        Returns:
            User object if found, None otherwise.
        """
        model = (
            self.db.query(UserModel)
            .filter(UserModel.email == email)
            .order_by(UserModel.created_at)
            .first()
        )
        if model:
            return model_to_user_record(model).to_public()
        return None

    def list_users(self) -> List[User]:
        """List all users.

        Returns:
            List of User objects, oldest first.
        """
        models = self.db.query(UserModel).order_by(UserModel.created_at).all()
        return [model_to_user_record(m).to_public() for m in models]

    def update_user(
        self,
        user_id: str,
        username: Optional[str] = None,
        email: Optional[str] = None,
        password: Optional[str] = None,
        roles: Optional[Iterable[Role]] = None,
    ) -> User:
        """Update a user's profile. Omitted fields are left unchanged.

        Args:
            user_id: ID of the user to update.
            username: New username.
            email: New email address.
            password: New plain text password; rehashed before storing.
            roles: Replacement role set.

        Returns:
            The updated User.

        Raises:
            UserNotFoundError: If the user does not exist.
            ValidationError: If a provided field is blank or invalid.
            DuplicateUsernameError: If the new username is taken.
        """
        model = self._get_model(user_id)

        if username is not None:
            username = _require_text(username, "username")
            if username != model.username and self._username_taken(username, user_id):
                raise DuplicateUsernameError(username)
        if email is not None:
            email = _validate_email(email)
        if password is not None and password == "":
            raise ValidationError("password must not be empty")
        role_list = parse_roles(roles) if roles is not None else None

        if username is not None:
            model.username = username
        if email is not None:
            model.email = email
        if password is not None:
            model.password_hash = self.hash_password(password)
        if role_list is not None:
            model.roles = [role.value for role in role_list]
        model.updated_at = datetime.now(pytz.utc).isoformat()

        self._commit_user_write(model.username, exclude_user_id=user_id)
        self.db.refresh(model)
        logger.info("Updated user: %s", user_id)
        return model_to_user_record(model).to_public()

    def delete_user(self, user_id: str) -> None:
        """Delete a user together with every review they authored.

        Args:
            user_id: ID of the user to delete.

        Raises:
            UserNotFoundError: If the user does not exist.
        """
        model = self._get_model(user_id)
        removed = (
            self.db.query(ReviewModel)
            .filter(ReviewModel.user_id == user_id)
            .delete(synchronize_session=False)
        )
        self.db.delete(model)
        self.db.commit()
        logger.info("Deleted user: %s (cascaded %d reviews)", user_id, removed)
