"""
Conversations and chat sessions: transcript + context snapshot per session, and the session rows
that expire SESSION_TTL_HOURS after creation.
Messages are stored as JSON ({role, content, timestamp, recommendations}) on the conversation row.
"""
import logging
import uuid
from datetime import datetime, timezone

from sqlalchemy.orm import Session

from mood_discovery.core.errors import ConflictError, NotFoundError
from mood_discovery.models.chat_session import ChatSession, default_expiry
from mood_discovery.models.conversation import Conversation
from mood_discovery.models.user import User
from mood_discovery.schemas.conversation import ChatHistory, ChatMessage, ConversationContext

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _as_utc(dt: datetime | None) -> datetime | None:
    if dt is not None and dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt


def create_session_id() -> str:
    """Generate a new session id (UUID hex)."""
    return uuid.uuid4().hex


def get_conversation(db: Session, user: User, session_id: str) -> Conversation | None:
    """The user's conversation for this session, or None (also None when owned by someone else)."""
    return (
        db.query(Conversation)
        .filter(Conversation.session_id == session_id, Conversation.user_id == user.id)
        .first()
    )


def _open_session(db: Session, user: User, conversation: Conversation) -> ChatSession:
    row = ChatSession(
        user_id=user.id,
        session_id=conversation.session_id,
        conversation_id=conversation.id,
        last_activity=_utcnow(),
        expires_at=default_expiry(),
    )
    db.add(row)
    return row


def start_conversation(
    db: Session,
    user: User,
    session_id: str | None = None,
    context: ConversationContext | None = None,
) -> Conversation:
    """Create a conversation and its session row. Raises ConflictError if the session id is taken."""
    session_id = session_id or create_session_id()
    if db.query(Conversation.id).filter(Conversation.session_id == session_id).first():
        raise ConflictError("Session id already in use")
    conversation = Conversation(
        user_id=user.id,
        session_id=session_id,
        messages=[],
        context=context.model_dump(mode="json", exclude_none=True) if context else {},
        active=True,
    )
    db.add(conversation)
    db.flush()
    _open_session(db, user, conversation)
    db.commit()
    db.refresh(conversation)
    return conversation


def get_or_start_conversation(db: Session, user: User, session_id: str | None) -> Conversation:
    """
    Resume the user's conversation for session_id, or start a new one.
    Resuming an ended conversation reactivates it under a fresh session row.
    """
    if not session_id:
        return start_conversation(db, user)
    conversation = get_conversation(db, user, session_id)
    if conversation is None:
        return start_conversation(db, user, session_id=session_id)
    if not conversation.active or get_active_session(db, session_id) is None:
        db.query(ChatSession).filter(ChatSession.session_id == session_id).delete()
        conversation.active = True
        _open_session(db, user, conversation)
        db.commit()
        db.refresh(conversation)
    return conversation


def discard_conversation(db: Session, conversation: Conversation) -> None:
    """Delete a conversation and its session rows (used when its first turn fails)."""
    session_id = conversation.session_id
    db.query(ChatSession).filter(ChatSession.conversation_id == conversation.id).delete(
        synchronize_session=False
    )
    db.delete(conversation)
    db.commit()
    logger.info("Discarded conversation %s after a failed first turn", session_id)


def messages_of(conversation: Conversation) -> list[ChatMessage]:
    return [ChatMessage.model_validate(m) for m in conversation.messages or []]


def context_of(conversation: Conversation) -> ConversationContext:
    return ConversationContext.model_validate(conversation.context or {})


def append_messages(
    db: Session,
    conversation: Conversation,
    messages: list[ChatMessage],
    context: ConversationContext | None = None,
) -> None:
    """Append turns in order (and replace the context snapshot when given)."""
    stored = list(conversation.messages or [])
    stored.extend(m.model_dump(mode="json", exclude_none=True) for m in messages)
    conversation.messages = stored  # reassign so the JSON column is flagged dirty
    if context is not None:
        conversation.context = context.model_dump(mode="json", exclude_none=True)
    conversation.updated_at = _utcnow()
    db.commit()


def get_active_session(db: Session, session_id: str, now: datetime | None = None) -> ChatSession | None:
    """Session row if present and not expired. Expired rows are never returned, swept or not."""
    now = now or _utcnow()
    row = db.query(ChatSession).filter(ChatSession.session_id == session_id).first()
    if row is None or _as_utc(row.expires_at) <= now:
        return None
    return row


def touch_session(db: Session, session_id: str, now: datetime | None = None) -> None:
    """Record activity on the session. Expiry stays fixed at creation + TTL."""
    row = get_active_session(db, session_id, now)
    if row is None:
        return
    row.last_activity = now or _utcnow()
    db.commit()


def get_history(db: Session, user: User, session_id: str) -> ChatHistory:
    conversation = get_conversation(db, user, session_id)
    if conversation is None:
        raise NotFoundError("Conversation not found")
    return ChatHistory(
        session_id=conversation.session_id,
        messages=messages_of(conversation),
        context=context_of(conversation),
        active=bool(conversation.active),
    )


def end_session(db: Session, user: User, session_id: str) -> dict:
    """Mark the conversation inactive and drop its session row. Messages are kept."""
    conversation = get_conversation(db, user, session_id)
    if conversation is None:
        raise NotFoundError("Conversation not found")
    conversation.active = False
    db.query(ChatSession).filter(ChatSession.session_id == session_id).delete()
    db.commit()
    return {"ok": True, "sessionId": session_id}


def purge_expired_sessions(db: Session, now: datetime | None = None) -> int:
    """Delete session rows whose expiry has passed. Returns the number deleted."""
    now = now or _utcnow()
    count = db.query(ChatSession).filter(ChatSession.expires_at <= now).delete(synchronize_session=False)
    db.commit()
    if count:
        logger.info("Purged %s expired sessions", count)
    return count
