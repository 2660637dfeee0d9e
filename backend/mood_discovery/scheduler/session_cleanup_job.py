"""
Delete chat session rows past their expiry. Runs on the background scheduler every
SESSION_CLEANUP_INTERVAL_MINUTES; conversations themselves are kept.
"""
import logging

from mood_discovery.db.session import Database
from mood_discovery.services.conversation_service import purge_expired_sessions

logger = logging.getLogger(__name__)


def run_session_cleanup_job(database: Database) -> int:
    db = database.session()
    try:
        return purge_expired_sessions(db)
    except Exception as e:
        logger.exception("Session cleanup job failed: %s", e)
        db.rollback()
        return 0
    finally:
        db.close()
