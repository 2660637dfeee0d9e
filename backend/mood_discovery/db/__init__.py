from mood_discovery.db.base import Base
from mood_discovery.db.session import Database, get_db
from mood_discovery.db.tables import ALL_TABLE_NAMES

__all__ = ["get_db", "Database", "Base", "ALL_TABLE_NAMES"]
