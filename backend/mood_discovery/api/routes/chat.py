"""
Chat endpoints: send a message, read a session's history, end a session.
"""
import logging

from fastapi import APIRouter, Depends, Request
from pydantic import Field, field_validator
from sqlalchemy.orm import Session

from mood_discovery.core.auth import get_current_user
from mood_discovery.core.constants import CHAT_RATE_LIMIT, MAX_CHAT_MESSAGE_LENGTH
from mood_discovery.core.deps import get_context_service, get_yelp_client
from mood_discovery.core.rate_limit import general_limit, limiter
from mood_discovery.db.session import get_db
from mood_discovery.models.user import User
from mood_discovery.schemas.base import CamelModel
from mood_discovery.schemas.conversation import ChatHistory, ChatTurnResponse, ConversationContext
from mood_discovery.services import conversation_service
from mood_discovery.services.chat_service import handle_chat_message
from mood_discovery.services.context_service import ContextService
from mood_discovery.services.yelp.client import YelpClient

router = APIRouter()
logger = logging.getLogger(__name__)


class ChatMessageRequest(CamelModel):
    message: str = Field(max_length=MAX_CHAT_MESSAGE_LENGTH)
    session_id: str | None = None  # omit to start a new conversation
    context: ConversationContext | None = None

    @field_validator("message")
    @classmethod
    def message_not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Message cannot be empty")
        return v


@router.post("/message", response_model=ChatTurnResponse)
@limiter.limit(CHAT_RATE_LIMIT)
@general_limit
async def send_message(
    request: Request,
    body: ChatMessageRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    yelp: YelpClient = Depends(get_yelp_client),
    context_service: ContextService = Depends(get_context_service),
) -> ChatTurnResponse:
    """
    Send a message; the reply carries recommendations and the session id.
    Pass sessionId from a previous response to continue that conversation.
    """
    return await handle_chat_message(
        db,
        user,
        yelp,
        body.message,
        session_id=body.session_id,
        context=body.context,
        context_service=context_service,
    )


@router.get("/history/{session_id}", response_model=ChatHistory)
@limiter.limit(CHAT_RATE_LIMIT)
@general_limit
async def get_history(
    request: Request,
    session_id: str,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> ChatHistory:
    return conversation_service.get_history(db, user, session_id)


@router.delete("/session/{session_id}")
@limiter.limit(CHAT_RATE_LIMIT)
@general_limit
async def end_session(
    request: Request,
    session_id: str,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """End the session; its messages stay readable through history."""
    return conversation_service.end_session(db, user, session_id)
