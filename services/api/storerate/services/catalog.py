"""Store catalog: create, update and delete stores.

Deleting a store is an ordered cascade inside the caller's transaction:
its ratings go first (through the rating ledger), then the store row.
"""

import logging
from typing import Any

from storerate.models import Store
from storerate.services.errors import ConflictError, NotFoundError, ValidationError
from storerate.services.ledger import RatingLedger
from storerate.services.policy import Action, Principal, Target, enforce, enforce_role
from storerate.stores.entities import EntityStore

logger = logging.getLogger("uvicorn.error")

STORE_FIELDS = ("name", "email", "address")
_REQUIRED_FIELDS = ("name", "email")


def _clean_store_fields(changes: dict[str, Any]) -> dict[str, Any]:
    """Drop unknown keys, strip strings and reject blank required fields."""
    cleaned: dict[str, Any] = {}
    for field, value in changes.items():
        if field not in STORE_FIELDS:
            continue
        if isinstance(value, str):
            value = value.strip()
        if field in _REQUIRED_FIELDS and not value:
            raise ValidationError(f"Store {field} is required", detail={"field": field})
        if field == "address" and value == "":
            value = None
        cleaned[field] = value
    return cleaned


class StoreCatalog:
    """Store lifecycle operations, each gated by the access policy."""

    def __init__(self, entities: EntityStore, ledger: RatingLedger) -> None:
        self._entities = entities
        self._ledger = ledger

    async def create_store(
        self,
        principal: Principal | None,
        *,
        name: str,
        email: str,
        address: str | None = None,
    ) -> Store:
        """Create a store owned by the calling owner.

        Raises:
            ValidationError: Missing name or email.
            ConflictError: Another store already uses this email.
        """
        owner = enforce(principal, Action.STORE_CREATE)
        fields = _clean_store_fields({"name": name, "email": email, "address": address})

        if await self._entities.get_store_by_email(fields["email"]) is not None:
            raise ConflictError("A store with this email already exists", detail={"email": fields["email"]})

        store = await self._entities.create_store(
            name=fields["name"],
            email=fields["email"],
            address=fields.get("address"),
            owner_id=owner.id,
        )
        logger.info("[stores] created store_id=%s owner_id=%s", store.id, owner.id)
        return store

    async def update_store(self, principal: Principal | None, store_id: int, changes: dict[str, Any]) -> Store:
        """Update name/email/address of a store.

        Email uniqueness is checked against every other store; keeping the
        store's own email is not a conflict.
        """
        store = await self._load(principal, Action.STORE_UPDATE, store_id)
        fields = _clean_store_fields(changes)

        email = fields.get("email")
        if email is not None:
            clash = await self._entities.get_store_by_email(email)
            if clash is not None and clash.id != store.id:
                raise ConflictError("A store with this email already exists", detail={"email": email})

        if not fields:
            return store

        store = await self._entities.update_store(store, fields)
        logger.info("[stores] updated store_id=%s fields=%s", store.id, sorted(fields))
        return store

    async def delete_store(self, principal: Principal | None, store_id: int) -> int:
        """Delete a store and, first, every rating referencing it.

        Returns:
            Number of ratings removed by the cascade.
        """
        store = await self._load(principal, Action.STORE_DELETE, store_id)
        return await self.cascade_delete(store)

    async def cascade_delete(self, store: Store) -> int:
        """Ordered cascade: ratings, then the store. No policy check."""
        removed = await self._ledger.delete_for_store(store.id)
        await self._entities.delete_store(store)
        logger.info("[stores] deleted store_id=%s ratings_removed=%s", store.id, removed)
        return removed

    async def _load(self, principal: Principal | None, action: Action, store_id: int) -> Store:
        """Fetch a store and gate ``action`` on its ownership.

        A missing store is reported as not found to roles that may perform
        ``action`` at all; other roles are refused before the lookup result
        matters.
        """
        store = await self._entities.get_store(store_id)
        if store is None:
            enforce_role(principal, action)
            raise NotFoundError("Store not found", detail={"store_id": store_id})
        enforce(principal, action, Target(owner_id=store.owner_id))
        return store
