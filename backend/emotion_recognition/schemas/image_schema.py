from pydantic import AliasChoices, BaseModel, Field
from typing import Any, Dict, List, Optional
from datetime import datetime

from emotion_recognition.schemas.emotion_schema import Pagination


class ImageCapture(BaseModel):
    """
    Webcam frame captured in the browser.
    The image is sent as a Base64 string, with or without a data URI header.
    """
    image: str = Field(..., min_length=1)
    session_id: Optional[int] = Field(
        None,
        validation_alias=AliasChoices("session_id", "sessionId"),
    )


class ImageResponse(BaseModel):
    id: int
    user_id: Optional[int] = None
    session_id: Optional[int] = None
    filename: str
    original_filename: Optional[str] = None
    file_size: Optional[int] = None
    mime_type: Optional[str] = None
    width: Optional[int] = None
    height: Optional[int] = None
    upload_timestamp: Optional[datetime] = None
    is_processed: bool
    processing_status: str
    metadata: Optional[Dict[str, Any]] = Field(default=None, validation_alias="image_metadata")

    class Config:
        from_attributes = True


class ImagePage(BaseModel):
    images: List[ImageResponse]
    pagination: Pagination
