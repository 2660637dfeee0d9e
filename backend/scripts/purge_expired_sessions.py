#!/usr/bin/env python3
"""
Delete expired chat session rows once, outside the scheduler (e.g. after a long outage).
Run: cd backend && python scripts/purge_expired_sessions.py
"""
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from mood_discovery.config import settings
from mood_discovery.db.session import Database
from mood_discovery.services.conversation_service import purge_expired_sessions


def main():
    database = Database(settings.database_url)
    db = database.session()
    try:
        count = purge_expired_sessions(db)
        print(f"Done. Deleted {count} expired session(s).")
    finally:
        db.close()
        database.dispose()


if __name__ == "__main__":
    main()
