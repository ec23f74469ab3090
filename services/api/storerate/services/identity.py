"""Bearer-token identity.

Tokens are issued by the auth service; this module only turns a verified token
into a principal, then checks that principal against the current account row.
``create_access_token`` exists for the seed script and tests.

Claims:
- sub: account id (string)
- role: "user" | "owner" | "admin"
- exp: expiry
"""

from datetime import datetime, timedelta, timezone

import jwt
from jwt import InvalidTokenError

from storerate.models.user import Role
from storerate.services.policy import Principal, principal_for
from storerate.settings import Settings
from storerate.stores.entities import EntityStore


def create_access_token(
    user_id: int,
    role: Role,
    settings: Settings,
    expires_delta: timedelta | None = None,
) -> str:
    """Mint a signed access token for an account."""
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=settings.access_token_expire_minutes)
    )
    payload = {"sub": str(user_id), "role": role.value, "exp": expire}
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def principal_from_token(token: str, settings: Settings) -> Principal | None:
    """Decode a bearer token into a principal.

    Returns:
        The principal, or None for a missing, expired, tampered or malformed
        token (the policy then denies with "unauthenticated").
    """
    try:
        payload = jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except InvalidTokenError:
        return None

    try:
        user_id = int(payload["sub"])
        role = Role(payload["role"])
    except (KeyError, TypeError, ValueError):
        return None
    return principal_for(user_id, role)


async def current_principal(claimed: Principal, entities: EntityStore) -> Principal | None:
    """Re-check a token's principal against the account as it is now.

    A deleted account yields None; a changed role takes effect immediately
    rather than when the token expires.
    """
    user = await entities.get_user(claimed.id)
    if user is None:
        return None
    return principal_for(user.id, user.role)
