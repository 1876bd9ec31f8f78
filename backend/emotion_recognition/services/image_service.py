import uuid
from pathlib import Path
from typing import List, Optional, Tuple

from sqlalchemy import or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from emotion_recognition.core.config import settings
from emotion_recognition.core.exceptions import InternalError, NotFoundError, ValidationError
from emotion_recognition.core.logging import get_logger
from emotion_recognition.models.images import Image
from emotion_recognition.models.users import User
from emotion_recognition.services.session_service import get_accessible_session
from emotion_recognition.utils.image_processing import decode_image_bytes, image_dimensions

logger = get_logger(__name__)

EXTENSIONS = {
    "image/jpeg": ".jpg",
    "image/png": ".png",
    "image/webp": ".webp",
    "image/bmp": ".bmp",
}

MAX_PAGE_SIZE = 100


def _upload_dir() -> Path:
    path = Path(settings.UPLOAD_DIR)
    path.mkdir(parents=True, exist_ok=True)
    return path


def save_image(
    db: Session,
    content: bytes,
    mime_type: Optional[str] = None,
    original_filename: Optional[str] = None,
    session_id: Optional[int] = None,
    user: Optional[User] = None,
) -> Image:
    """
    Validates that the bytes decode as an image, writes them to UPLOAD_DIR and
    records the frame's metadata.

    Raises:
        ValidationError: empty, oversized or undecodable payload.
        NotFoundError: session_id is not a session visible to the caller.
    """
    if not content:
        raise ValidationError("Empty image payload")

    if len(content) > settings.MAX_UPLOAD_BYTES:
        raise ValidationError(f"Image exceeds the {settings.MAX_UPLOAD_BYTES} byte limit")

    if session_id is not None:
        get_accessible_session(db, session_id, user)

    frame = decode_image_bytes(content)
    if frame is None:
        raise ValidationError("Failed to decode the image. The file may be corrupted.")

    width, height = image_dimensions(frame)

    filename = f"{uuid.uuid4().hex}{EXTENSIONS.get(mime_type or '', '.jpg')}"
    file_path = _upload_dir() / filename

    try:
        file_path.write_bytes(content)
    except OSError as e:
        logger.error(f"Could not write upload {file_path}: {e}", exc_info=True)
        raise InternalError("Failed to store image") from e

    image = Image(
        user_id           = user.id if user is not None else None,
        session_id        = session_id,
        filename          = filename,
        original_filename = original_filename,
        file_path         = str(file_path),
        file_size         = len(content),
        mime_type         = mime_type,
        width             = width,
        height            = height,
    )

    try:
        db.add(image)
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        file_path.unlink(missing_ok=True)
        logger.error(f"Failed to save image metadata: {e}", exc_info=True)
        raise InternalError("Failed to store image") from e

    db.refresh(image)

    logger.info(
        f"Image stored. id={image.id} size={image.file_size} {width}x{height}",
        extra={"user_id": image.user_id, "session_id": session_id}
    )
    return image


def get_image(db: Session, image_id: int, user: Optional[User] = None) -> Image:
    image = db.get(Image, image_id)
    if image is None or (image.user_id is not None and (user is None or user.id != image.user_id)):
        raise NotFoundError("Image not found")
    return image


def list_session_images(
    db: Session,
    session_id: int,
    user: Optional[User] = None,
    limit: int = 50,
    offset: int = 0,
) -> Tuple[List[Image], int]:
    """
    Images of a session the caller can see, newest first. Images owned by
    another user stay hidden even inside an anonymous session.
    """
    get_accessible_session(db, session_id, user)

    visible = Image.user_id.is_(None)
    if user is not None:
        visible = or_(visible, Image.user_id == user.id)

    query = db.query(Image).filter(Image.session_id == session_id, visible)
    total = query.count()
    images = (
        query
        .order_by(Image.upload_timestamp.desc(), Image.id.desc())
        .offset(offset)
        .limit(min(limit, MAX_PAGE_SIZE))
        .all()
    )
    return images, total


def delete_image(db: Session, image_id: int, user: Optional[User] = None) -> None:
    """
    Removes the image row and file. Observations that referenced it keep
    existing with image_id set to NULL by the foreign key.
    """
    image = get_image(db, image_id, user)
    file_path = Path(image.file_path)

    try:
        db.delete(image)
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Failed to delete image {image_id}: {e}", exc_info=True)
        raise InternalError("Failed to delete image") from e

    file_path.unlink(missing_ok=True)
    logger.info(f"Image deleted. id={image_id}")
