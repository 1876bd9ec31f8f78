from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from emotion_recognition.api.dependencies import get_current_user, get_optional_user
from emotion_recognition.core.database import get_db
from emotion_recognition.core.exceptions import NotFoundError
from emotion_recognition.core.logging import get_logger
from emotion_recognition.models.emotions import Emotion
from emotion_recognition.models.users import User
from emotion_recognition.schemas.emotion_schema import (
    EmotionCreate,
    EmotionCreated,
    EmotionDescriptorResponse,
    EmotionFeed,
    EmotionLabel,
    EmotionPage,
    EmotionResponse,
    EmotionStat,
    EmotionSummaryResponse,
    Pagination,
    SessionSummary,
    TimelinePoint,
    UserSummary,
)
from emotion_recognition.services import aggregator, emotion_queries, ingestion
from emotion_recognition.services.emotion_catalog import describe, intensity_for
from emotion_recognition.services.session_service import can_access, get_accessible_session

router = APIRouter()

logger = get_logger(__name__)


# POST /api/v1/emotions
@router.post("", response_model=EmotionCreated, status_code=status.HTTP_201_CREATED)
def record_emotion(
    body: EmotionCreate,
    current_user: Optional[User] = Depends(get_optional_user),
    db: Session = Depends(get_db)
):
    """
    Records one observation produced by the inference adapter.

    The session counter and the per-emotion summary are updated in the same
    transaction. The returned timestamp is the server's clock.
    """
    emotion = ingestion.ingest_observation(db, body, current_user)

    return EmotionCreated(
        id=emotion.id,
        session_id=emotion.session_id,
        emotion_type=emotion.emotion_type,
        confidence_score=emotion.confidence_score,
        timestamp=emotion.timestamp,
        intensity=intensity_for(emotion.confidence_score),
    )


# GET /api/v1/emotions/catalog
@router.get("/catalog", response_model=List[EmotionDescriptorResponse])
def get_emotion_catalog():
    """Static description, icon and color for every emotion label."""
    catalog = []
    for label in EmotionLabel:
        descriptor = describe(label)
        catalog.append(EmotionDescriptorResponse(
            emotion_type=label.value,
            description=descriptor.description,
            icon=descriptor.icon,
            color=descriptor.color,
            secondary_emotions=list(descriptor.secondary_emotions),
            recommendations=list(descriptor.recommendations),
        ))
    return catalog


# GET /api/v1/emotions/session/{session_id}
@router.get("/session/{session_id}", response_model=EmotionPage)
def get_session_emotions(
    session_id: int,
    limit: int = Query(default=50, ge=1, le=100),
    offset: int = Query(default=0, ge=0),
    current_user: Optional[User] = Depends(get_optional_user),
    db: Session = Depends(get_db)
):
    get_accessible_session(db, session_id, current_user)

    records, total = emotion_queries.list_session_emotions(db, session_id, limit, offset)

    return EmotionPage(
        emotions=[EmotionResponse.model_validate(r) for r in records],
        pagination=Pagination(limit=limit, offset=offset, total=total),
    )


# GET /api/v1/emotions/summary/session/{session_id}
@router.get("/summary/session/{session_id}", response_model=SessionSummary)
def get_session_summary(
    session_id: int,
    current_user: Optional[User] = Depends(get_optional_user),
    db: Session = Depends(get_db)
):
    """
    Per-emotion rollup of a session, most frequent first (ties by label).
    Read back from the store on every call.
    """
    session = get_accessible_session(db, session_id, current_user)
    summaries = aggregator.summarize(db, session_id)

    return SessionSummary(
        session_id=session.id,
        total_detections=session.total_detections,
        dominant_emotion=summaries[0].emotion_type if summaries else None,
        summary=[EmotionSummaryResponse.model_validate(s) for s in summaries],
    )


# GET /api/v1/emotions/summary
@router.get("/summary", response_model=UserSummary)
def get_user_summary(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Per-emotion rollup across all sessions of the authenticated user."""
    logger.info("Emotion summary requested.", extra={"user_id": current_user.id})

    summary = aggregator.summarize_user(db, current_user.id)

    return UserSummary(
        user_id=current_user.id,
        total_detections=sum(item["count"] for item in summary),
        dominant_emotion=summary[0]["emotion_type"] if summary else None,
        summary=[EmotionSummaryResponse(**item) for item in summary],
    )


# GET /api/v1/emotions/history
@router.get("/history", response_model=EmotionPage)
def get_emotion_history(
    limit: int = Query(default=50, ge=1, le=100),
    offset: int = Query(default=0, ge=0),
    emotion_type: Optional[EmotionLabel] = Query(
        default=None,
        description="Only this emotion (happy, sad, angry, ...)"
    ),
    date_from: Optional[datetime] = Query(
        default=None,
        description="From this instant (ISO 8601: 2026-02-01T00:00:00Z)"
    ),
    date_to: Optional[datetime] = Query(
        default=None,
        description="Up to this instant (ISO 8601: 2026-02-28T23:59:59Z)"
    ),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Observations across all sessions of the authenticated user, newest first,
    with optional emotion and date-range filters.
    """
    records, total = emotion_queries.user_history(
        db,
        current_user.id,
        date_from=date_from,
        date_to=date_to,
        emotion_type=emotion_type.value if emotion_type else None,
        limit=limit,
        offset=offset,
    )

    logger.info(
        f"History returned: {len(records)} of {total} records.",
        extra={"user_id": current_user.id}
    )

    return EmotionPage(
        emotions=[EmotionResponse.model_validate(r) for r in records],
        pagination=Pagination(limit=limit, offset=offset, total=total),
    )


# GET /api/v1/emotions/stats
@router.get("/stats", response_model=List[EmotionStat])
def get_emotion_stats(
    date_from: Optional[datetime] = Query(default=None),
    date_to: Optional[datetime] = Query(default=None),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return emotion_queries.user_stats(db, current_user.id, date_from, date_to)


# GET /api/v1/emotions/recent
@router.get("/recent", response_model=EmotionFeed)
def get_recent_emotions(
    limit: int = Query(default=20, ge=1, le=100),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Latest observations of the authenticated user, for the live dashboard."""
    records = emotion_queries.recent_emotions(db, current_user.id, limit)

    return EmotionFeed(
        emotions=[EmotionResponse.model_validate(r) for r in records],
        count=len(records),
    )


# GET /api/v1/emotions/timeline
@router.get("/timeline", response_model=List[TimelinePoint])
def get_emotion_timeline(
    days: int = Query(default=30, ge=1, le=365),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Per-day, per-emotion counts over the last `days` days, newest day first."""
    return emotion_queries.user_timeline(db, current_user.id, days)


# DELETE /api/v1/emotions/{emotion_id}
@router.delete("/{emotion_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_emotion(
    emotion_id: int,
    current_user: Optional[User] = Depends(get_optional_user),
    db: Session = Depends(get_db)
) -> None:
    """Removes one observation; the session counter and summary follow."""
    emotion = db.get(Emotion, emotion_id)
    if emotion is None or not can_access(emotion.session, current_user):
        raise NotFoundError("Emotion not found")

    aggregator.remove_observation(db, emotion_id)
    return None
