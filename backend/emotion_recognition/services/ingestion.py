"""
Detection ingestion.

Entry point for observations produced by the inference adapter. The adapter
itself runs in the browser; this module only validates its output, checks
the session and hands the observation to the aggregator.
"""
from typing import Any, Mapping, Optional, Union

import pydantic
from sqlalchemy.orm import Session

from emotion_recognition.core.exceptions import ValidationError
from emotion_recognition.models.emotions import Emotion
from emotion_recognition.models.users import User
from emotion_recognition.schemas.emotion_schema import EmotionCreate
from emotion_recognition.services import aggregator, image_service
from emotion_recognition.services.session_service import get_accessible_session


def first_error_message(errors) -> str:
    """
    Formats the first pydantic error as "<field>: <message>".
    Shared with the HTTP layer so both report validation failures the same way.
    """
    if not errors:
        return "Invalid input"
    error = errors[0]
    location = [str(part) for part in error.get("loc", ()) if part not in ("body", "query", "path")]
    field = ".".join(location)
    message = error.get("msg", "Invalid value")
    return f"{field}: {message}" if field else message


def validate_observation(payload: Union[EmotionCreate, Mapping[str, Any]]) -> EmotionCreate:
    if isinstance(payload, EmotionCreate):
        return payload
    try:
        return EmotionCreate.model_validate(dict(payload))
    except pydantic.ValidationError as e:
        raise ValidationError(first_error_message(e.errors())) from e


def ingest_observation(
    db: Session,
    payload: Union[EmotionCreate, Mapping[str, Any]],
    user: Optional[User] = None,
) -> Emotion:
    """
    Validates one observation and records it against its session.

    Raises:
        ValidationError: label, confidence, age or gender out of range.
        ValidationError: the referenced image was captured in another session.
        NotFoundError: the session or the referenced image does not exist or
                       is not visible to the caller.
    """
    observation = validate_observation(payload)
    get_accessible_session(db, observation.session_id, user)

    if observation.image_id is not None:
        image = image_service.get_image(db, observation.image_id, user)
        if image.session_id is not None and image.session_id != observation.session_id:
            raise ValidationError("image_id: image belongs to another session")

    return aggregator.record_observation(db, observation.session_id, observation)
