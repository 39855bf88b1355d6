"""Role and capability definitions.

Roles are a closed enumeration. Each role grants a fixed set of capabilities
and callers ask for a capability, never for a role name.
"""

from enum import Enum
from typing import Dict, FrozenSet, Iterable, List

from core.exceptions import PermissionDeniedError, ValidationError


class Role(str, Enum):
    """Roles a user can hold."""

    PLAYER = "player"
    MODERATOR = "moderator"
    ADMIN = "admin"


class Capability(str, Enum):
    """Operations guarded by a role check."""

    WRITE_REVIEW = "write_review"
    MODERATE_REVIEWS = "moderate_reviews"
    MANAGE_GAMES = "manage_games"
    MANAGE_USERS = "manage_users"


ROLE_CAPABILITIES: Dict[Role, FrozenSet[Capability]] = {
    Role.PLAYER: frozenset({Capability.WRITE_REVIEW}),
    Role.MODERATOR: frozenset(
        {Capability.WRITE_REVIEW, Capability.MODERATE_REVIEWS}
    ),
    Role.ADMIN: frozenset(Capability),
}

DEFAULT_ROLES: FrozenSet[Role] = frozenset({Role.PLAYER})


def parse_roles(values: Iterable[str]) -> List[Role]:
    """Convert role codes into Role members.

    Args:
        values: Role codes such as "player" or "admin".

    Returns:
        De-duplicated list of roles, sorted by code.

    Raises:
        ValidationError: If any code is not a known role.
    """
    roles = set()
    for value in values:
        try:
            roles.add(Role(value))
        except ValueError:
            raise ValidationError(f"Unknown role: {value!r}") from None
    return sorted(roles, key=lambda role: role.value)


def has_capability(roles: Iterable[Role], capability: Capability) -> bool:
    """Return True if any of the roles grants the capability."""
    return any(capability in ROLE_CAPABILITIES[Role(role)] for role in roles)


def require_capability(roles: Iterable[Role], capability: Capability) -> None:
    """Raise PermissionDeniedError unless the roles grant the capability.

    Args:
        roles: Roles held by the caller.
        capability: Capability required by the operation.

    Raises:
        PermissionDeniedError: If no role grants the capability.
    """
    if not has_capability(roles, capability):
        raise PermissionDeniedError(
            f"Missing capability: {Capability(capability).value}"
        )


def require_owner_or_capability(
    actor_id: str,
    owner_id: str,
    roles: Iterable[Role],
    capability: Capability,
) -> None:
    """Allow the owner of a resource, or anyone holding the capability."""
    if actor_id != owner_id:
        require_capability(roles, capability)
