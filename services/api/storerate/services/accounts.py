"""User directory: admin-side account management.

Deleting an account cascades:
1. ratings the account wrote
2. stores the account owns (each through the store cascade)
3. the account itself
"""

import logging
from typing import Any

from storerate.models import Role, User
from storerate.services.catalog import StoreCatalog
from storerate.services.errors import ConflictError, NotFoundError, ValidationError
from storerate.services.ledger import RatingLedger
from storerate.services.policy import Action, Principal, enforce
from storerate.stores.entities import EntityStore

logger = logging.getLogger("uvicorn.error")

USER_FIELDS = ("name", "email", "role", "address")
_REQUIRED_FIELDS = ("name", "email", "role")


def _clean_user_fields(changes: dict[str, Any]) -> dict[str, Any]:
    cleaned: dict[str, Any] = {}
    for field, value in changes.items():
        if field not in USER_FIELDS:
            continue
        if isinstance(value, str):
            value = value.strip()
        if field in _REQUIRED_FIELDS and not value:
            raise ValidationError(f"User {field} is required", detail={"field": field})
        if field == "role" and not isinstance(value, Role):
            try:
                value = Role(value)
            except ValueError:
                raise ValidationError(
                    "Role must be one of: " + ", ".join(r.value for r in Role),
                    detail={"role": value},
                ) from None
        if field == "address" and value == "":
            value = None
        cleaned[field] = value
    return cleaned


class UserDirectory:
    """Account management operations (admin only)."""

    def __init__(self, entities: EntityStore, ledger: RatingLedger, catalog: StoreCatalog) -> None:
        self._entities = entities
        self._ledger = ledger
        self._catalog = catalog

    async def get_user(self, principal: Principal | None, user_id: int) -> User:
        enforce(principal, Action.USER_READ)
        return await self._require(user_id)

    async def update_user(self, principal: Principal | None, user_id: int, changes: dict[str, Any]) -> User:
        """Update name/email/role/address of an account.

        Raises:
            NotFoundError: No such account.
            ValidationError: Blank required field or unknown role.
            ConflictError: Email taken, or demoting an owner who still owns stores.
        """
        enforce(principal, Action.USER_UPDATE)
        user = await self._require(user_id)
        fields = _clean_user_fields(changes)

        email = fields.get("email")
        if email is not None:
            clash = await self._entities.get_user_by_email(email)
            if clash is not None and clash.id != user.id:
                raise ConflictError("A user with this email already exists", detail={"email": email})

        new_role = fields.get("role")
        if user.role is Role.OWNER and new_role is not None and new_role is not Role.OWNER:
            _, owned = await self._entities.list_stores(owner_id=user.id, limit=1)
            if owned:
                raise ConflictError(
                    "Cannot change the role of an owner who still owns stores",
                    detail={"user_id": user.id, "stores": owned},
                )

        if not fields:
            return user

        user = await self._entities.update_user(user, fields)
        logger.info("[users] updated user_id=%s fields=%s", user.id, sorted(fields))
        return user

    async def delete_user(self, principal: Principal | None, user_id: int) -> dict[str, int]:
        """Delete an account with its ratings and owned stores.

        Returns:
            Counts of removed dependents: ratings written, stores and the
            ratings those stores had received.
        """
        admin = enforce(principal, Action.USER_DELETE)
        user = await self._require(user_id)
        if user.id == admin.id:
            raise ConflictError("Administrators cannot delete their own account", detail={"user_id": user.id})

        ratings_removed = await self._ledger.delete_for_user(user.id)

        stores, _ = await self._entities.list_stores(owner_id=user.id)
        store_ratings_removed = 0
        for store in stores:
            store_ratings_removed += await self._catalog.cascade_delete(store)

        await self._entities.delete_user(user)
        logger.info(
            "[users] deleted user_id=%s ratings_removed=%s stores_removed=%s",
            user.id,
            ratings_removed,
            len(stores),
        )
        return {
            "ratings": ratings_removed,
            "stores": len(stores),
            "store_ratings": store_ratings_removed,
        }

    async def _require(self, user_id: int) -> User:
        user = await self._entities.get_user(user_id)
        if user is None:
            raise NotFoundError("User not found", detail={"user_id": user_id})
        return user
