from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from emotion_recognition.api.dependencies import get_current_user, get_optional_user
from emotion_recognition.core.database import get_db
from emotion_recognition.models.users import User
from emotion_recognition.schemas.session_schema import (
    SessionClose,
    SessionCreate,
    SessionPage,
    SessionResponse,
    SessionUpdate,
)
from emotion_recognition.services import aggregator, session_service

router = APIRouter()

# REST endpoints for detection sessions.
#
# Endpoints:
#   POST   /api/v1/sessions           -> create (anonymous when no token)
#   GET    /api/v1/sessions           -> caller's sessions, paginated
#   GET    /api/v1/sessions/{id}      -> one session
#   PUT    /api/v1/sessions/{id}      -> edit name / device metadata
#   PUT    /api/v1/sessions/{id}/end  -> close session
#   DELETE /api/v1/sessions/{id}      -> delete with its observations


@router.post("", response_model=SessionResponse, status_code=status.HTTP_201_CREATED)
def create_session(
    body: SessionCreate,
    current_user: Optional[User] = Depends(get_optional_user),
    db: Session = Depends(get_db)
):
    """Opens a new recording session owned by the caller, or anonymous without a token."""
    return session_service.create_session(db, body, current_user)


@router.get("", response_model=SessionPage)
def list_sessions(
    limit: int = Query(default=20, ge=1, le=100),
    offset: int = Query(default=0, ge=0),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    sessions, total = session_service.list_sessions(db, current_user, limit, offset)
    return SessionPage(
        sessions=[SessionResponse.model_validate(s) for s in sessions],
        limit=limit,
        offset=offset,
        total=total,
    )


@router.get("/{session_id}", response_model=SessionResponse)
def get_session(
    session_id: int,
    current_user: Optional[User] = Depends(get_optional_user),
    db: Session = Depends(get_db)
):
    return session_service.get_accessible_session(db, session_id, current_user)


@router.put("/{session_id}", response_model=SessionResponse)
def update_session(
    session_id: int,
    body: SessionUpdate,
    current_user: Optional[User] = Depends(get_optional_user),
    db: Session = Depends(get_db)
):
    return session_service.update_session(db, session_id, body, current_user)


@router.put("/{session_id}/end", response_model=SessionResponse)
def end_session(
    session_id: int,
    body: SessionClose,
    current_user: Optional[User] = Depends(get_optional_user),
    db: Session = Depends(get_db)
):
    """
    Closes the session and derives its duration.

    Closing twice is a no-op: the first end time and duration are kept.
    The reported totalDetections is checked against the stored observations
    and the stored count wins.
    """
    session_service.get_accessible_session(db, session_id, current_user)
    return aggregator.close_session(
        db,
        session_id,
        end_time=body.end_time,
        total_detections=body.total_detections,
        accuracy=body.accuracy,
    )


@router.delete("/{session_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_session(
    session_id: int,
    current_user: Optional[User] = Depends(get_optional_user),
    db: Session = Depends(get_db)
) -> None:
    session_service.delete_session(db, session_id, current_user)
    return None
