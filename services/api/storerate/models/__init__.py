"""SQLAlchemy ORM models.

Models represent database tables:
- users: Accounts with a role (user, owner, admin)
- stores: Stores owned by an owner account
- ratings: One 1-5 star rating per (user, store) pair
"""

from storerate.models.user import Role, User
from storerate.models.store import Store
from storerate.models.rating import Rating

__all__ = ["Rating", "Role", "Store", "User"]
