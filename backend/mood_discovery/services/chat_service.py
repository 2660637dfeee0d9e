"""
One chat turn: resolve the conversation, assemble context, ask the recommendation service,
then store both turns.

Context is merged in increasing precedence: stored conversation context, the current context
for the request location, fields sent with the request, then what the user's own words say.
Nothing is stored when the recommendation service fails, so a failed turn can be retried as is.
A conversation started by the failed turn is deleted again.
"""
import logging

from sqlalchemy.orm import Session

from mood_discovery.models.user import User
from mood_discovery.schemas.conversation import ChatMessage, ChatTurnResponse, ConversationContext
from mood_discovery.services import conversation_service
from mood_discovery.services.context_extractor import extract_context
from mood_discovery.services.context_service import ContextService, context_from_current, merge_contexts
from mood_discovery.services.yelp.client import YelpClient

logger = logging.getLogger(__name__)


async def handle_chat_message(
    db: Session,
    user: User,
    yelp: YelpClient,
    message: str,
    *,
    session_id: str | None = None,
    context: ConversationContext | None = None,
    context_service: ContextService | None = None,
) -> ChatTurnResponse:
    created = not session_id or conversation_service.get_conversation(db, user, session_id) is None
    conversation = conversation_service.get_or_start_conversation(db, user, session_id)
    history = conversation_service.messages_of(conversation)
    stored = conversation_service.context_of(conversation)

    user_turn = ChatMessage(role="user", content=message)
    extracted = extract_context([*history, user_turn])

    location = (context.location if context else None) or stored.location
    current = None
    if context_service is not None and location is not None:
        current = context_from_current(await context_service.get_current_context(location))

    merged = merge_contexts(stored, current, context, dict(extracted))

    try:
        result = await yelp.send_chat_message(message, conversation_history=history, context=merged)
    except Exception:
        # The caller never learns the session id of a conversation whose first turn failed
        if created:
            conversation_service.discard_conversation(db, conversation)
        raise

    assistant_turn = ChatMessage(
        role="assistant",
        content=result.response,
        recommendations=result.recommendations or None,
    )
    conversation_service.append_messages(db, conversation, [user_turn, assistant_turn], context=merged)
    conversation_service.touch_session(db, conversation.session_id)
    logger.info(
        "Chat turn for session %s: %s recommendations", conversation.session_id, len(result.recommendations)
    )
    return ChatTurnResponse(
        session_id=conversation.session_id,
        response=result.response,
        recommendations=result.recommendations,
    )
