"""
Users: local record for each identity-provider user, created on first authenticated request.
"""
import logging
from typing import Any

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from mood_discovery.models.user import User
from mood_discovery.schemas.user import UserPreferences, UserProfile

logger = logging.getLogger(__name__)


def get_or_create_user(db: Session, clerk_id: str, email: str | None = None) -> User:
    """Return the user for this identity-provider id, creating it on first contact."""
    row = db.query(User).filter(User.clerk_id == clerk_id).first()
    if row:
        if email and not row.email:
            row.email = email
            db.commit()
        return row
    row = User(clerk_id=clerk_id, email=email or "", preferences={})
    db.add(row)
    try:
        db.commit()
    except IntegrityError:
        # Another request created the same user first
        db.rollback()
        return db.query(User).filter(User.clerk_id == clerk_id).one()
    db.refresh(row)
    logger.info("Created user for clerk_id=%s", clerk_id)
    return row


def user_preferences(user: User) -> UserPreferences:
    return UserPreferences.model_validate(user.preferences or {})


def user_profile(user: User) -> UserProfile:
    return UserProfile(
        id=user.id,
        clerk_id=user.clerk_id,
        email=user.email or "",
        created_at=user.created_at,
        preferences=user_preferences(user),
    )


def update_preferences(db: Session, user: User, updates: dict[str, Any]) -> User:
    """
    Partial update of the preference bag: only keys present in updates change.
    A key set to None clears that preference.
    """
    current = user_preferences(user).model_dump(exclude_none=True)
    for key, value in updates.items():
        if value is None:
            current.pop(key, None)
        else:
            current[key] = value
    # Validate the merged bag before storing it
    user.preferences = UserPreferences.model_validate(current).model_dump(mode="json", exclude_none=True)
    db.commit()
    db.refresh(user)
    return user
