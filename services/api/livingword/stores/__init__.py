"""Data stores for persistence and locking.

Stores handle:
- PostgreSQL: DB session, ORM operations (daily verses, device tokens)
- Redis: short-lived generation locks

No scheduling or generation logic in stores - that belongs in services.
"""
