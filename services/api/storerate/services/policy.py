"""Access policy.

Maps (principal, action, target) to Allow or Deny. Pure: no I/O, no state.

Decision order:
1. No principal -> Deny("unauthenticated"), before any role check
2. Exhaustive match over the principal variant (admin / owner / user)
3. Ownership actions compare target ownership with the principal id
4. Anything not explicitly allowed -> Deny("forbidden")
"""

from dataclasses import dataclass
from enum import Enum
from typing import assert_never

from storerate.models.user import Role
from storerate.services.errors import ForbiddenError, UnauthenticatedError


@dataclass(frozen=True)
class AdminPrincipal:
    """Authenticated administrator."""

    id: int

    @property
    def role(self) -> Role:
        return Role.ADMIN


@dataclass(frozen=True)
class OwnerPrincipal:
    """Authenticated store owner."""

    id: int

    @property
    def role(self) -> Role:
        return Role.OWNER


@dataclass(frozen=True)
class UserPrincipal:
    """Authenticated end-user (rater)."""

    id: int

    @property
    def role(self) -> Role:
        return Role.USER


Principal = AdminPrincipal | OwnerPrincipal | UserPrincipal


def principal_for(user_id: int, role: Role) -> Principal:
    """Build the principal variant for an account id and role."""
    match role:
        case Role.ADMIN:
            return AdminPrincipal(user_id)
        case Role.OWNER:
            return OwnerPrincipal(user_id)
        case Role.USER:
            return UserPrincipal(user_id)
        case _:
            assert_never(role)


class Action(Enum):
    """Operations gated by the policy."""

    # User management
    USER_LIST = "user:list"
    USER_READ = "user:read"
    USER_UPDATE = "user:update"
    USER_DELETE = "user:delete"
    ADMIN_DASHBOARD = "dashboard:admin"

    # Stores
    STORE_LIST_ALL = "store:list_all"
    STORE_BROWSE = "store:browse"
    STORE_VIEW = "store:view"
    STORE_CREATE = "store:create"
    STORE_READ_OWNED = "store:read_owned"
    STORE_UPDATE = "store:update"
    STORE_DELETE = "store:delete"
    OWNER_DASHBOARD = "dashboard:owner"

    # Ratings
    RATING_SUBMIT = "rating:submit"
    RATING_UPDATE = "rating:update"
    RATING_LIST_OWN = "rating:list_own"


@dataclass(frozen=True)
class Target:
    """Ownership facts about the record an action touches."""

    owner_id: int | None = None  # Store.owner_id
    user_id: int | None = None  # Rating.user_id


@dataclass(frozen=True)
class Allow:
    """Positive decision."""

    def __bool__(self) -> bool:
        return True


@dataclass(frozen=True)
class Deny:
    """Negative decision with a stable reason ("unauthenticated" / "forbidden")."""

    reason: str

    def __bool__(self) -> bool:
        return False


Decision = Allow | Deny

UNAUTHENTICATED = "unauthenticated"
FORBIDDEN = "forbidden"

_ADMIN_ACTIONS = frozenset(
    {
        Action.USER_LIST,
        Action.USER_READ,
        Action.USER_UPDATE,
        Action.USER_DELETE,
        Action.ADMIN_DASHBOARD,
        Action.STORE_LIST_ALL,
        Action.STORE_BROWSE,
        Action.STORE_VIEW,
        Action.STORE_READ_OWNED,
        Action.STORE_UPDATE,
        Action.STORE_DELETE,
    }
)

_OWNER_ACTIONS = frozenset({Action.STORE_CREATE, Action.OWNER_DASHBOARD})
_OWNER_SCOPED_ACTIONS = frozenset(
    {Action.STORE_READ_OWNED, Action.STORE_UPDATE, Action.STORE_DELETE}
)

_USER_ACTIONS = frozenset(
    {
        Action.STORE_BROWSE,
        Action.STORE_VIEW,
        Action.RATING_SUBMIT,
        Action.RATING_LIST_OWN,
    }
)


def authorize(
    principal: Principal | None,
    action: Action,
    target: Target | None = None,
) -> Decision:
    """Decide whether ``principal`` may perform ``action`` on ``target``.

    Args:
        principal: Authenticated principal, or None when the request carried
            no valid identity.
        action: Operation being attempted.
        target: Ownership facts for ownership-scoped actions.

    Returns:
        Allow() or Deny(reason).
    """
    if principal is None:
        return Deny(UNAUTHENTICATED)

    match principal:
        case AdminPrincipal():
            allowed = action in _ADMIN_ACTIONS
        case OwnerPrincipal(id=owner_id):
            if action in _OWNER_SCOPED_ACTIONS:
                allowed = target is not None and target.owner_id == owner_id
            else:
                allowed = action in _OWNER_ACTIONS
        case UserPrincipal(id=user_id):
            if action is Action.RATING_UPDATE:
                # Without a target this is a role-level check; the ledger's
                # requester-scoped lookup still refuses other users' ratings.
                allowed = target is None or target.user_id == user_id
            else:
                allowed = action in _USER_ACTIONS
        case _:
            return Deny(UNAUTHENTICATED)

    return Allow() if allowed else Deny(FORBIDDEN)


def enforce(
    principal: Principal | None,
    action: Action,
    target: Target | None = None,
) -> Principal:
    """Raise unless ``principal`` may perform ``action``.

    Returns:
        The (now known non-None) principal, for convenient chaining.

    Raises:
        UnauthenticatedError: No principal.
        ForbiddenError: Role or ownership mismatch.
    """
    decision = authorize(principal, action, target)
    if isinstance(decision, Deny):
        if decision.reason == UNAUTHENTICATED:
            raise UnauthenticatedError("Authentication required")
        raise ForbiddenError(
            "You are not allowed to perform this action",
            detail={"action": action.value},
        )
    assert principal is not None
    return principal


def enforce_role(principal: Principal | None, action: Action) -> Principal:
    """Role-level check for an ownership-scoped action whose record is missing.

    Evaluates ``action`` as if the record belonged to the principal, so
    ownership never decides the outcome: a role that may act on its own
    records passes (and the caller reports the record as not found), any
    other role is refused.

    Raises:
        UnauthenticatedError: No principal.
        ForbiddenError: The role may not perform ``action`` on any record.
    """
    if principal is None:
        return enforce(principal, action)
    return enforce(principal, action, Target(owner_id=principal.id, user_id=principal.id))
