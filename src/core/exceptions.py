"""Custom exception classes for the Game Review backend.

This module defines application-specific exceptions following Google Python
Style Guide. Every error the managers raise derives from GameReviewError so
the transport layer can map the whole taxonomy in one place.
"""


class GameReviewError(Exception):
    """Base exception for all Game Review backend errors."""

    pass


class DuplicateUsernameError(GameReviewError):
    """Raised when registering or renaming to a username that is taken."""

    def __init__(self, username: str):
        """Initialize the exception.

        Args:
            username: The username that already exists.
        """
        self.username = username
        super().__init__(f"Username '{username}' is already taken")


class InvalidCredentialsError(GameReviewError):
    """Raised for an unknown username and for a wrong password alike."""

    def __init__(self):
        super().__init__("Invalid credentials")


class InvalidTokenError(GameReviewError):
    """Raised for every bearer token verification failure."""

    def __init__(self):
        super().__init__("Invalid token")


class NotFoundError(GameReviewError):
    """Raised when a requested entity cannot be found."""

    entity = "Entity"

    def __init__(self, entity_id: str):
        """Initialize the exception.

        Args:
            entity_id: The ID of the entity that was not found.
        """
        self.entity_id = entity_id
        super().__init__(f"{self.entity} '{entity_id}' not found")


class UserNotFoundError(NotFoundError):
    """Raised when a requested user cannot be found."""

    entity = "User"


class GameNotFoundError(NotFoundError):
    """Raised when a requested game cannot be found."""

    entity = "Game"


class ReviewNotFoundError(NotFoundError):
    """Raised when a requested review cannot be found."""

    entity = "Review"


class ValidationError(GameReviewError):
    """Raised when input data validation fails."""

    pass


class ReferenceViolationError(GameReviewError):
    """Raised when a review points at a game or user that does not exist."""

    pass


class ConstraintViolationError(GameReviewError):
    """Raised when the database rejects a write for an unclassified reason."""

    pass


class PermissionDeniedError(GameReviewError):
    """Raised when an identity lacks the capability for an operation."""

    pass


class ConfigurationError(GameReviewError):
    """Raised when there is a configuration error."""

    pass
