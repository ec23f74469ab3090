"""Data stores for persistence.

Stores handle:
- PostgreSQL: DB handle, sessions, ORM operations
- Entity store: the data-access interface the services consume

No business/aggregation logic in stores - that belongs in services.
"""
