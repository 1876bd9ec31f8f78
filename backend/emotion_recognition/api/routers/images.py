from typing import Optional

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile, status
from sqlalchemy.orm import Session

from emotion_recognition.api.dependencies import get_optional_user
from emotion_recognition.core.config import settings
from emotion_recognition.core.database import get_db
from emotion_recognition.core.exceptions import ValidationError
from emotion_recognition.models.users import User
from emotion_recognition.schemas.emotion_schema import Pagination
from emotion_recognition.schemas.image_schema import ImageCapture, ImagePage, ImageResponse
from emotion_recognition.services import image_service
from emotion_recognition.utils.image_processing import decode_base64_bytes

router = APIRouter()


@router.post("", response_model=ImageResponse, status_code=status.HTTP_201_CREATED)
async def upload_image(
    file: UploadFile = File(...),
    session_id: Optional[int] = Form(default=None),
    current_user: Optional[User] = Depends(get_optional_user),
    db: Session = Depends(get_db)
):
    """
    Stores an uploaded image file (JPEG/PNG) and its dimensions.
    """
    if not (file.content_type or "").startswith("image/"):
        raise ValidationError("File provided is not an image.")

    # One byte past the limit is enough to tell the upload is too large
    contents = await file.read(settings.MAX_UPLOAD_BYTES + 1)

    return image_service.save_image(
        db,
        contents,
        mime_type=file.content_type,
        original_filename=file.filename,
        session_id=session_id,
        user=current_user,
    )


@router.post("/capture", response_model=ImageResponse, status_code=status.HTTP_201_CREATED)
def capture_image(
    body: ImageCapture,
    current_user: Optional[User] = Depends(get_optional_user),
    db: Session = Depends(get_db)
):
    """Stores a Base64 webcam frame as a JPEG image."""
    contents = decode_base64_bytes(body.image)
    if contents is None:
        raise ValidationError("image: not valid Base64")

    return image_service.save_image(
        db,
        contents,
        mime_type="image/jpeg",
        session_id=body.session_id,
        user=current_user,
    )


@router.get("/session/{session_id}", response_model=ImagePage)
def get_session_images(
    session_id: int,
    limit: int = Query(default=50, ge=1, le=100),
    offset: int = Query(default=0, ge=0),
    current_user: Optional[User] = Depends(get_optional_user),
    db: Session = Depends(get_db)
):
    images, total = image_service.list_session_images(db, session_id, current_user, limit, offset)

    return ImagePage(
        images=[ImageResponse.model_validate(i) for i in images],
        pagination=Pagination(limit=limit, offset=offset, total=total),
    )


@router.get("/{image_id}", response_model=ImageResponse)
def get_image(
    image_id: int,
    current_user: Optional[User] = Depends(get_optional_user),
    db: Session = Depends(get_db)
):
    return image_service.get_image(db, image_id, current_user)


@router.delete("/{image_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_image(
    image_id: int,
    current_user: Optional[User] = Depends(get_optional_user),
    db: Session = Depends(get_db)
) -> None:
    """Deletes the image; observations that referenced it keep existing, unlinked."""
    image_service.delete_image(db, image_id, current_user)
    return None
