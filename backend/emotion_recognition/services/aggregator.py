"""
Session aggregator.

Owns every write that touches emotion observations, so that for each session

    sum(summary.count for its summaries) == session.total_detections

holds after every operation commits. Each public function is one unit of
work: it locks the session row (SELECT ... FOR UPDATE on PostgreSQL), applies
all of its writes and commits once, or rolls everything back.

Summary rows whose count reaches zero are deleted. Removing an observation
rebuilds its label's summary by re-aggregating the remaining observations,
since a running average cannot be reversed exactly.
"""
from datetime import datetime
from typing import List, Optional

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from emotion_recognition.core.exceptions import (
    EmotionServiceError,
    InternalError,
    NotFoundError,
    ValidationError,
)
from emotion_recognition.core.logging import get_logger
from emotion_recognition.models.emotion_summary import EmotionSummary
from emotion_recognition.models.emotions import Emotion
from emotion_recognition.models.images import Image
from emotion_recognition.models.sessions import DetectionSession
from emotion_recognition.schemas.emotion_schema import EmotionCreate
from emotion_recognition.utils.time_utils import as_utc, utc_now

logger = get_logger(__name__)


def _lock_session(db: Session, session_id: int) -> DetectionSession:
    """
    Loads the session row with a row-level lock held until commit/rollback.
    Concurrent writers for the same session queue up here, which also
    serializes the summary upserts below it.
    """
    session = (
        db.query(DetectionSession)
        .filter(DetectionSession.id == session_id)
        .with_for_update()
        .populate_existing()
        .first()
    )
    if session is None:
        raise NotFoundError("Session not found")
    return session


def _lock_summary(db: Session, session_id: int, emotion_type: str) -> Optional[EmotionSummary]:
    return (
        db.query(EmotionSummary)
        .filter(
            EmotionSummary.session_id == session_id,
            EmotionSummary.emotion_type == emotion_type,
        )
        .with_for_update()
        .populate_existing()
        .first()
    )


def _apply_to_summary(
    db: Session,
    session: DetectionSession,
    emotion_type: str,
    confidence: float,
    detected_at: datetime,
) -> EmotionSummary:
    summary = _lock_summary(db, session.id, emotion_type)

    if summary is None:
        summary = EmotionSummary(
            user_id            = session.user_id,
            session_id         = session.id,
            emotion_type       = emotion_type,
            count              = 1,
            average_confidence = confidence,
            first_detected     = detected_at,
            last_detected      = detected_at,
        )
        db.add(summary)
        return summary

    old_count = summary.count or 0
    old_avg   = summary.average_confidence or 0.0

    summary.average_confidence = (old_avg * old_count + confidence) / (old_count + 1)
    summary.count = old_count + 1

    if summary.first_detected is None:
        summary.first_detected = detected_at
    if summary.last_detected is None or as_utc(summary.last_detected) < detected_at:
        summary.last_detected = detected_at

    return summary


def _rebuild_summary(db: Session, session: DetectionSession, emotion_type: str) -> None:
    """Recomputes one label's summary from the observations still stored."""
    count, avg_confidence, first_detected, last_detected = (
        db.query(
            func.count(Emotion.id),
            func.avg(Emotion.confidence_score),
            func.min(Emotion.timestamp),
            func.max(Emotion.timestamp),
        )
        .filter(
            Emotion.session_id == session.id,
            Emotion.emotion_type == emotion_type,
        )
        .one()
    )

    summary = _lock_summary(db, session.id, emotion_type)

    if not count:
        if summary is not None:
            db.delete(summary)
        return

    if summary is None:
        summary = EmotionSummary(
            user_id      = session.user_id,
            session_id   = session.id,
            emotion_type = emotion_type,
        )
        db.add(summary)

    summary.count              = count
    summary.average_confidence = float(avg_confidence)
    summary.first_detected     = first_detected
    summary.last_detected      = last_detected


def _refresh_percentages(db: Session, session: DetectionSession) -> None:
    db.flush()
    total = session.total_detections or 0
    summaries = (
        db.query(EmotionSummary)
        .filter(EmotionSummary.session_id == session.id)
        .all()
    )
    for summary in summaries:
        summary.percentage_of_total = round(summary.count / total * 100, 2) if total else 0.0


def record_observation(db: Session, session_id: int, observation: EmotionCreate) -> Emotion:
    """
    Stores one observation and updates the session counter and the label's
    summary in the same transaction.

    The observation timestamp is the server's clock at insert time.

    Raises:
        NotFoundError: session (or referenced image) does not exist.
        InternalError: the store rejected the write.
    """
    emotion_type = observation.emotion_type.value
    confidence   = float(observation.confidence_score)

    try:
        session = _lock_session(db, session_id)

        if observation.image_id is not None and db.get(Image, observation.image_id) is None:
            raise NotFoundError("Image not found")

        detected_at = utc_now()

        emotion = Emotion(
            session_id         = session.id,
            emotion_type       = emotion_type,
            confidence_score   = confidence,
            timestamp          = detected_at,
            face_coordinates   = (
                observation.face_coordinates.model_dump()
                if observation.face_coordinates is not None else None
            ),
            age_estimate       = observation.age_estimate,
            gender_estimate    = (
                observation.gender_estimate.value
                if observation.gender_estimate is not None else None
            ),
            image_id           = observation.image_id,
            processing_time_ms = observation.processing_time_ms,
            raw_data           = observation.raw_data,
        )
        db.add(emotion)

        session.total_detections = (session.total_detections or 0) + 1
        _apply_to_summary(db, session, emotion_type, confidence, detected_at)
        _refresh_percentages(db, session)

        db.commit()

    except EmotionServiceError:
        db.rollback()
        raise
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(
            f"Failed to record observation: {e}",
            extra={"session_id": session_id},
            exc_info=True
        )
        raise InternalError("Failed to record emotion detection") from e

    db.refresh(emotion)

    logger.info(
        f"Observation recorded. id={emotion.id} type={emotion_type} "
        f"confidence={confidence:.4f}",
        extra={"session_id": session_id}
    )
    return emotion


def remove_observation(db: Session, emotion_id: int) -> None:
    """
    Deletes one observation, decrements the session counter (never below
    zero) and rebuilds the label's summary from the remaining rows.

    Raises:
        NotFoundError: the observation does not exist.
    """
    emotion = db.get(Emotion, emotion_id)
    if emotion is None:
        raise NotFoundError("Emotion not found")

    session_id = emotion.session_id

    try:
        session = _lock_session(db, session_id)

        # Re-read under the lock; a concurrent delete may have won
        emotion = (
            db.query(Emotion)
            .filter(Emotion.id == emotion_id)
            .populate_existing()
            .first()
        )
        if emotion is None:
            raise NotFoundError("Emotion not found")

        emotion_type = emotion.emotion_type
        db.delete(emotion)
        db.flush()

        if (session.total_detections or 0) <= 0:
            logger.warning(
                f"Counter already at zero while removing observation {emotion_id}.",
                extra={"session_id": session_id}
            )
        session.total_detections = max(0, (session.total_detections or 0) - 1)

        _rebuild_summary(db, session, emotion_type)
        _refresh_percentages(db, session)

        db.commit()

    except EmotionServiceError:
        db.rollback()
        raise
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(
            f"Failed to remove observation {emotion_id}: {e}",
            extra={"session_id": session_id},
            exc_info=True
        )
        raise InternalError("Failed to delete emotion") from e

    logger.info(
        f"Observation removed. id={emotion_id} type={emotion_type}",
        extra={"session_id": session_id}
    )


def close_session(
    db: Session,
    session_id: int,
    end_time: Optional[datetime] = None,
    total_detections: Optional[int] = None,
    accuracy: Optional[float] = None,
) -> DetectionSession:
    """
    Ends a session and derives its duration.

    - Closing is one-way. Closing an already closed session is a no-op that
      returns it unchanged; the first end_time, duration and accuracy stay.
    - The client's total_detections is not trusted: the counter is set to
      the number of stored observations and a mismatch is logged.
    - accuracy is stored as reported.

    Raises:
        NotFoundError: the session does not exist.
        ValidationError: end_time is earlier than the session start.
    """
    try:
        session = _lock_session(db, session_id)

        if not session.is_open:
            db.commit()
            logger.info(
                "Session already closed; close request ignored.",
                extra={"session_id": session_id}
            )
            return session

        end_time = as_utc(end_time) or utc_now()
        start_time = as_utc(session.start_time)

        if end_time < start_time:
            raise ValidationError("end_time must not be earlier than the session start_time")

        stored_count = (
            db.query(func.count(Emotion.id))
            .filter(Emotion.session_id == session.id)
            .scalar()
        )
        if total_detections is not None and total_detections != stored_count:
            logger.warning(
                f"Client reported {total_detections} detections, "
                f"{stored_count} are stored. Keeping the stored count.",
                extra={"session_id": session_id}
            )

        session.end_time         = end_time
        session.duration_seconds = int((end_time - start_time).total_seconds())
        session.total_detections = stored_count
        session.is_completed     = True
        if accuracy is not None:
            session.accuracy_score = accuracy

        _refresh_percentages(db, session)
        db.commit()

    except EmotionServiceError:
        db.rollback()
        raise
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(
            f"Failed to close session: {e}",
            extra={"session_id": session_id},
            exc_info=True
        )
        raise InternalError("Failed to end session") from e

    db.refresh(session)

    logger.info(
        f"Session closed. duration={session.duration_seconds}s "
        f"detections={session.total_detections}",
        extra={"session_id": session_id}
    )
    return session


def summarize(db: Session, session_id: int) -> List[EmotionSummary]:
    """
    Summary rows of a session, most frequent label first.
    Ties are ordered by label so the result is deterministic.
    """
    if db.get(DetectionSession, session_id) is None:
        raise NotFoundError("Session not found")

    return (
        db.query(EmotionSummary)
        .filter(EmotionSummary.session_id == session_id)
        .order_by(EmotionSummary.count.desc(), EmotionSummary.emotion_type.asc())
        .populate_existing()
        .all()
    )


def summarize_user(db: Session, user_id: int) -> List[dict]:
    """
    Rolls the per-session summaries of a user into one entry per label.
    The average confidence is weighted by each session's count.
    """
    rows = (
        db.query(
            EmotionSummary.emotion_type,
            func.sum(EmotionSummary.count).label("count"),
            func.sum(EmotionSummary.count * EmotionSummary.average_confidence).label("weighted_confidence"),
            func.min(EmotionSummary.first_detected).label("first_detected"),
            func.max(EmotionSummary.last_detected).label("last_detected"),
        )
        .filter(EmotionSummary.user_id == user_id)
        .group_by(EmotionSummary.emotion_type)
        .all()
    )

    total = sum(int(row.count or 0) for row in rows)

    summary = [
        {
            "emotion_type"       : row.emotion_type,
            "count"              : int(row.count),
            "average_confidence" : float(row.weighted_confidence) / int(row.count),
            "first_detected"     : row.first_detected,
            "last_detected"      : row.last_detected,
            "percentage_of_total": round(int(row.count) / total * 100, 2) if total else 0.0,
        }
        for row in rows
        if row.count
    ]
    summary.sort(key=lambda item: (-item["count"], item["emotion_type"]))
    return summary
