"""Request-scoped dependencies.

Wiring per request:
- one database session (one transaction) from the app's Database handle
- an entity store over that session
- ledger / catalog / directory / query services over the entity store
- the principal decoded from the bearer token (None when absent or invalid)
"""

from collections.abc import AsyncGenerator
from typing import Annotated

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from storerate.services.accounts import UserDirectory
from storerate.services.catalog import StoreCatalog
from storerate.services.identity import current_principal, principal_from_token
from storerate.services.ledger import RatingLedger
from storerate.services.policy import Principal
from storerate.services.query import QueryService
from storerate.settings import Settings, get_settings
from storerate.stores.entities import EntityStore, SqlEntityStore
from storerate.stores.postgres import Database

bearer_scheme = HTTPBearer(auto_error=False)


def get_database(request: Request) -> Database:
    """Database handle constructed by the application lifespan."""
    return request.app.state.database


async def get_session(
    database: Annotated[Database, Depends(get_database)],
) -> AsyncGenerator[AsyncSession, None]:
    """One session per request; commits on success, rolls back on error."""
    async with database.session() as session:
        yield session


def get_entities(session: Annotated[AsyncSession, Depends(get_session)]) -> EntityStore:
    return SqlEntityStore(session)


async def get_principal(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
    settings: Annotated[Settings, Depends(get_settings)],
    entities: Annotated[EntityStore, Depends(get_entities)],
) -> Principal | None:
    """Principal for the request, or None; the access policy decides what None means.

    The role comes from the account row, not the token, so deleted accounts
    and role changes apply to tokens already issued.
    """
    if credentials is None:
        return None
    claimed = principal_from_token(credentials.credentials, settings)
    if claimed is None:
        return None
    return await current_principal(claimed, entities)


def get_ledger(entities: Annotated[EntityStore, Depends(get_entities)]) -> RatingLedger:
    return RatingLedger(entities)


def get_catalog(
    entities: Annotated[EntityStore, Depends(get_entities)],
    ledger: Annotated[RatingLedger, Depends(get_ledger)],
) -> StoreCatalog:
    return StoreCatalog(entities, ledger)


def get_directory(
    entities: Annotated[EntityStore, Depends(get_entities)],
    ledger: Annotated[RatingLedger, Depends(get_ledger)],
    catalog: Annotated[StoreCatalog, Depends(get_catalog)],
) -> UserDirectory:
    return UserDirectory(entities, ledger, catalog)


def get_query(
    entities: Annotated[EntityStore, Depends(get_entities)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> QueryService:
    return QueryService(
        entities,
        default_page_size=settings.default_page_size,
        max_page_size=settings.max_page_size,
        feed_limit=settings.recent_feed_limit,
    )


CurrentPrincipal = Annotated[Principal | None, Depends(get_principal)]
Ledger = Annotated[RatingLedger, Depends(get_ledger)]
Catalog = Annotated[StoreCatalog, Depends(get_catalog)]
Directory = Annotated[UserDirectory, Depends(get_directory)]
Queries = Annotated[QueryService, Depends(get_query)]
