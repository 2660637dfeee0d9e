"""
Single source of truth for database tables created by migrations.

Use these names when writing raw SQL. Must match models and alembic/versions.
"""
ALL_TABLE_NAMES = (
    "users",
    "conversations",
    "saved_places",
    "sessions",
)
