#!/usr/bin/env python3
"""Seed database with demo data.

Creates:
- One admin, two owners and three end-user accounts
- A few stores per owner
- Ratings from the end-users (one per user per store)

Ratings are submitted through the rating ledger so the seed obeys the same
rules as the API. The script is idempotent: accounts and stores are matched by
email, and an existing (user, store) rating is left alone.

Usage:
    cd services/api
    python -m scripts.seed
"""

import asyncio
import os
import sys

# Add parent to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from dotenv import load_dotenv

from storerate.models import Role, User
from storerate.services.identity import create_access_token
from storerate.services.ledger import RatingLedger
from storerate.settings import get_settings
from storerate.stores.entities import SqlEntityStore
from storerate.stores.postgres import Database

load_dotenv()

# ============================================================
# Demo data
# ============================================================

ACCOUNTS = [
    {"name": "Platform Admin", "email": "admin@example.com", "role": Role.ADMIN, "address": None},
    {"name": "Olivia Owner", "email": "olivia@example.com", "role": Role.OWNER, "address": "12 Market St"},
    {"name": "Omar Owner", "email": "omar@example.com", "role": Role.OWNER, "address": "7 Harbour Rd"},
    {"name": "Uma User", "email": "uma@example.com", "role": Role.USER, "address": "3 Elm Ave"},
    {"name": "Uri User", "email": "uri@example.com", "role": Role.USER, "address": "88 Oak Ln"},
    {"name": "Ula User", "email": "ula@example.com", "role": Role.USER, "address": None},
]

STORES = [
    {"name": "Corner Grocery", "email": "grocery@example.com", "address": "1 Main St", "owner": "olivia@example.com"},
    {"name": "Book Nook", "email": "books@example.com", "address": "22 Library Way", "owner": "olivia@example.com"},
    {"name": "Harbour Fish Market", "email": "fish@example.com", "address": "5 Pier Rd", "owner": "omar@example.com"},
]

# (user email, store email, stars)
RATINGS = [
    ("uma@example.com", "grocery@example.com", 5),
    ("uri@example.com", "grocery@example.com", 5),
    ("ula@example.com", "grocery@example.com", 4),
    ("uma@example.com", "books@example.com", 1),
    ("uri@example.com", "fish@example.com", 3),
]


async def seed_database() -> None:
    """Seed the database with demo accounts, stores and ratings."""
    settings = get_settings()
    database = Database(settings)
    await database.connect()

    try:
        async with database.session() as session:
            entities = SqlEntityStore(session)
            print("Seeding database...")

            print("\nCreating accounts...")
            users = await seed_accounts(session, entities)

            print("\nCreating stores...")
            stores = await seed_stores(entities, users)

            print("\nCreating ratings...")
            await seed_ratings(entities, users, stores)

        print("\nDatabase seeded successfully!")
        print("\nAccess tokens (for local testing):")
        for email, user in users.items():
            token = create_access_token(user.id, user.role, settings)
            print(f"  {user.role.value:<5} {email}: {token}")
    finally:
        await database.close()


async def seed_accounts(session, entities: SqlEntityStore) -> dict[str, User]:
    """Create demo accounts. Credentials are left to the auth service."""
    users: dict[str, User] = {}
    for account in ACCOUNTS:
        existing = await entities.get_user_by_email(account["email"])
        if existing:
            print(f"  skip {account['email']} (exists)")
            users[account["email"]] = existing
            continue

        user = User(**account)
        session.add(user)
        await session.flush()
        users[account["email"]] = user
        print(f"  + {account['email']} ({account['role'].value})")
    return users


async def seed_stores(entities: SqlEntityStore, users: dict[str, User]) -> dict[str, int]:
    """Create demo stores; returns store id by email."""
    stores: dict[str, int] = {}
    for store_def in STORES:
        existing = await entities.get_store_by_email(store_def["email"])
        if existing:
            print(f"  skip {store_def['name']} (exists)")
            stores[store_def["email"]] = existing.id
            continue

        store = await entities.create_store(
            name=store_def["name"],
            email=store_def["email"],
            address=store_def["address"],
            owner_id=users[store_def["owner"]].id,
        )
        stores[store_def["email"]] = store.id
        print(f"  + {store_def['name']}")
    return stores


async def seed_ratings(entities: SqlEntityStore, users: dict[str, User], stores: dict[str, int]) -> None:
    """Submit demo ratings through the ledger."""
    ledger = RatingLedger(entities)
    for user_email, store_email, stars in RATINGS:
        user_id = users[user_email].id
        store_id = stores[store_email]
        if await entities.find_rating(user_id, store_id):
            print(f"  skip {user_email} -> {store_email} (exists)")
            continue
        await ledger.submit(user_id, store_id, stars)
        print(f"  + {user_email} -> {store_email}: {stars}")


if __name__ == "__main__":
    asyncio.run(seed_database())
