from typing import List, Optional, Tuple

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from emotion_recognition.core.exceptions import InternalError, NotFoundError, ValidationError
from emotion_recognition.core.logging import get_logger
from emotion_recognition.models.sessions import DetectionSession
from emotion_recognition.models.users import User
from emotion_recognition.schemas.session_schema import SessionCreate, SessionUpdate

logger = get_logger(__name__)

MAX_PAGE_SIZE = 100


def can_access(session: DetectionSession, user: Optional[User]) -> bool:
    """
    Owned sessions are private to their owner.
    Anonymous sessions (no owner) are open to every caller.
    """
    if session.user_id is None:
        return True
    return user is not None and user.id == session.user_id


def get_accessible_session(db: Session, session_id: int, user: Optional[User]) -> DetectionSession:
    """
    Raises NotFoundError both when the session is missing and when the caller
    may not see it, so session ids of other users cannot be probed.
    """
    session = db.get(DetectionSession, session_id)
    if session is None or not can_access(session, user):
        raise NotFoundError("Session not found")
    return session


def _commit(db: Session, action: str, user_id: Optional[int]) -> None:
    try:
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Failed to {action}: {e}", extra={"user_id": user_id}, exc_info=True)
        raise InternalError(f"Failed to {action}") from e


def create_session(db: Session, data: SessionCreate, user: Optional[User] = None) -> DetectionSession:
    session = DetectionSession(
        user_id      = user.id if user is not None else None,
        session_name = data.session_name,
        device_info  = data.device_info,
        ip_address   = data.ip_address,
        location     = data.location,
    )
    db.add(session)
    _commit(db, "create session", session.user_id)
    db.refresh(session)

    logger.info(
        f"Session created. name={session.session_name!r}",
        extra={"user_id": session.user_id, "session_id": session.id}
    )
    return session


def list_sessions(
    db: Session,
    user: User,
    limit: int = 20,
    offset: int = 0,
) -> Tuple[List[DetectionSession], int]:
    """Caller's sessions, newest first, plus the total count for paging."""
    query = db.query(DetectionSession).filter(DetectionSession.user_id == user.id)
    total = query.count()
    sessions = (
        query
        .order_by(DetectionSession.start_time.desc(), DetectionSession.id.desc())
        .offset(offset)
        .limit(min(limit, MAX_PAGE_SIZE))
        .all()
    )
    return sessions, total


def update_session(
    db: Session,
    session_id: int,
    data: SessionUpdate,
    user: Optional[User] = None,
) -> DetectionSession:
    session = get_accessible_session(db, session_id, user)

    changes = data.model_dump(exclude_unset=True)
    if "session_name" in changes and changes["session_name"] is None:
        raise ValidationError("session_name: must not be null")

    for field, value in changes.items():
        setattr(session, field, value)

    _commit(db, "update session", session.user_id)
    db.refresh(session)
    return session


def delete_session(db: Session, session_id: int, user: Optional[User] = None) -> None:
    """Deletes the session; observations, summaries and images cascade with it."""
    session = get_accessible_session(db, session_id, user)
    db.delete(session)
    _commit(db, "delete session", user.id if user is not None else None)

    logger.info("Session deleted.", extra={"session_id": session_id})
