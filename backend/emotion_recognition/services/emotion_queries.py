from datetime import datetime, time, timedelta
from typing import List, Optional, Tuple

from sqlalchemy import func
from sqlalchemy.orm import Session

from emotion_recognition.models.emotions import Emotion
from emotion_recognition.models.sessions import DetectionSession
from emotion_recognition.utils.time_utils import as_utc, utc_now

MAX_PAGE_SIZE = 100


def _until(query, date_to: datetime):
    """
    Upper bound of a date range. A bare date (midnight) covers that whole
    day, so "date_to=2026-02-28" includes everything recorded on the 28th.
    """
    if date_to.time() == time.min:
        return query.filter(Emotion.timestamp < as_utc(date_to) + timedelta(days=1))
    return query.filter(Emotion.timestamp <= as_utc(date_to))


def list_session_emotions(
    db: Session,
    session_id: int,
    limit: int = 50,
    offset: int = 0,
) -> Tuple[List[Emotion], int]:
    """Observations of one session, newest first."""
    query = db.query(Emotion).filter(Emotion.session_id == session_id)
    total = query.count()
    records = (
        query
        .order_by(Emotion.timestamp.desc(), Emotion.id.desc())
        .offset(offset)
        .limit(min(limit, MAX_PAGE_SIZE))
        .all()
    )
    return records, total


def _user_emotions(
    db: Session,
    user_id: int,
    date_from: Optional[datetime] = None,
    date_to: Optional[datetime] = None,
    emotion_type: Optional[str] = None,
):
    query = (
        db.query(Emotion)
        .join(DetectionSession, Emotion.session_id == DetectionSession.id)
        .filter(DetectionSession.user_id == user_id)
    )

    if date_from:
        query = query.filter(Emotion.timestamp >= as_utc(date_from))

    if date_to:
        query = _until(query, date_to)

    if emotion_type:
        query = query.filter(Emotion.emotion_type == emotion_type)

    return query


def user_history(
    db: Session,
    user_id: int,
    date_from: Optional[datetime] = None,
    date_to: Optional[datetime] = None,
    emotion_type: Optional[str] = None,
    limit: int = 50,
    offset: int = 0,
) -> Tuple[List[Emotion], int]:
    """Observations across all of a user's sessions, filtered, newest first."""
    query = _user_emotions(db, user_id, date_from, date_to, emotion_type)
    total = query.count()
    records = (
        query
        .order_by(Emotion.timestamp.desc(), Emotion.id.desc())
        .offset(offset)
        .limit(min(limit, MAX_PAGE_SIZE))
        .all()
    )
    return records, total


def user_stats(
    db: Session,
    user_id: int,
    date_from: Optional[datetime] = None,
    date_to: Optional[datetime] = None,
) -> List[dict]:
    """
    Per-label statistics computed straight from the observations:
    count, mean/min/max confidence and the number of sessions the label appears in.
    """
    # One aggregation query instead of N queries per emotion
    aggregation = (
        _user_emotions(db, user_id, date_from, date_to)
        .with_entities(
            Emotion.emotion_type,
            func.count(Emotion.id).label("count"),
            func.avg(Emotion.confidence_score).label("avg_confidence"),
            func.min(Emotion.confidence_score).label("min_confidence"),
            func.max(Emotion.confidence_score).label("max_confidence"),
            func.count(func.distinct(Emotion.session_id)).label("unique_sessions"),
        )
        .group_by(Emotion.emotion_type)
        .order_by(func.count(Emotion.id).desc(), Emotion.emotion_type.asc())
        .all()
    )

    return [
        {
            "emotion_type"   : row.emotion_type,
            "count"          : row.count,
            "avg_confidence" : round(float(row.avg_confidence), 4),
            "min_confidence" : float(row.min_confidence),
            "max_confidence" : float(row.max_confidence),
            "unique_sessions": row.unique_sessions,
        }
        for row in aggregation
    ]


def recent_emotions(db: Session, user_id: int, limit: int = 20) -> List[Emotion]:
    """Latest observations across the user's sessions, for a live feed."""
    return (
        _user_emotions(db, user_id)
        .order_by(Emotion.timestamp.desc(), Emotion.id.desc())
        .limit(min(limit, MAX_PAGE_SIZE))
        .all()
    )


def user_timeline(db: Session, user_id: int, days: int = 30) -> List[dict]:
    """
    Per-day, per-label counts over the last `days` days (UTC calendar days,
    today included), newest day first.
    """
    today = utc_now().replace(hour=0, minute=0, second=0, microsecond=0)
    since = today - timedelta(days=days - 1)

    day = func.date(Emotion.timestamp)
    rows = (
        _user_emotions(db, user_id, date_from=since)
        .with_entities(
            day.label("day"),
            Emotion.emotion_type,
            func.count(Emotion.id).label("count"),
            func.avg(Emotion.confidence_score).label("avg_confidence"),
        )
        .group_by(day, Emotion.emotion_type)
        .order_by(day.desc(), func.count(Emotion.id).desc(), Emotion.emotion_type.asc())
        .all()
    )

    return [
        {
            # SQLite returns a string, PostgreSQL a date
            "date"          : str(row.day),
            "emotion_type"  : row.emotion_type,
            "count"         : row.count,
            "avg_confidence": round(float(row.avg_confidence), 4),
        }
        for row in rows
    ]
