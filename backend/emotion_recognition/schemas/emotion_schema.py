from enum import Enum
from typing import Any, Dict, List, Optional
from datetime import datetime

from pydantic import AliasChoices, BaseModel, Field


class EmotionLabel(str, Enum):
    """Closed set of expressions the inference adapter can report."""
    HAPPY = "happy"
    SAD = "sad"
    ANGRY = "angry"
    SURPRISED = "surprised"
    FEARFUL = "fearful"
    DISGUSTED = "disgusted"
    NEUTRAL = "neutral"


class Gender(str, Enum):
    MALE = "male"
    FEMALE = "female"


VALID_EMOTIONS = [label.value for label in EmotionLabel]


class BoundingBox(BaseModel):
    """Face rectangle in pixel coordinates of the analysed frame."""
    x: float
    y: float
    width: float = Field(..., ge=0.0)
    height: float = Field(..., ge=0.0)


class EmotionCreate(BaseModel):
    """
    One observation produced by the inference adapter for a processed frame.
    Both snake_case and the browser client's camelCase keys are accepted.
    """
    session_id: int = Field(
        ...,
        validation_alias=AliasChoices("session_id", "sessionId"),
        description="Session the observation belongs to"
    )
    emotion_type: EmotionLabel = Field(
        ...,
        validation_alias=AliasChoices("emotion_type", "emotionType", "emotion_label", "emotionLabel"),
        description="Dominant expression (happy, sad, angry, surprised, fearful, disgusted, neutral)"
    )
    confidence_score: float = Field(
        ...,
        ge=0.0,
        le=1.0,
        validation_alias=AliasChoices("confidence_score", "confidenceScore", "confidence"),
        description="Classifier probability for the dominant expression"
    )
    face_coordinates: Optional[BoundingBox] = Field(
        default=None,
        validation_alias=AliasChoices("face_coordinates", "faceCoordinates", "bounding_box", "boundingBox"),
    )
    age_estimate: Optional[int] = Field(
        default=None,
        ge=0,
        le=120,
        validation_alias=AliasChoices("age_estimate", "ageEstimate"),
    )
    gender_estimate: Optional[Gender] = Field(
        default=None,
        validation_alias=AliasChoices("gender_estimate", "genderEstimate"),
    )
    image_id: Optional[int] = Field(
        default=None,
        validation_alias=AliasChoices("image_id", "imageId"),
    )
    processing_time_ms: Optional[int] = Field(
        default=None,
        ge=0,
        validation_alias=AliasChoices("processing_time_ms", "processingTimeMs"),
    )
    raw_data: Optional[Dict[str, Any]] = Field(
        default=None,
        validation_alias=AliasChoices("raw_data", "rawData"),
        description="Opaque adapter output, stored verbatim"
    )


class EmotionCreated(BaseModel):
    """Acknowledgement returned by the ingestion endpoint."""
    id: int
    session_id: int
    emotion_type: str
    confidence_score: float
    timestamp: datetime
    intensity: str


class EmotionResponse(BaseModel):
    id: int
    session_id: int
    emotion_type: str
    confidence_score: float
    timestamp: datetime
    face_coordinates: Optional[Dict[str, Any]] = None
    age_estimate: Optional[int] = None
    gender_estimate: Optional[str] = None
    image_id: Optional[int] = None
    processing_time_ms: Optional[int] = None
    raw_data: Optional[Dict[str, Any]] = None

    class Config:
        from_attributes = True


class Pagination(BaseModel):
    limit: int
    offset: int
    total: int


class EmotionPage(BaseModel):
    emotions: List[EmotionResponse]
    pagination: Pagination


class EmotionSummaryResponse(BaseModel):
    emotion_type: str
    count: int
    average_confidence: Optional[float] = None
    first_detected: Optional[datetime] = None
    last_detected: Optional[datetime] = None
    percentage_of_total: Optional[float] = None

    class Config:
        from_attributes = True


class SessionSummary(BaseModel):
    session_id: int
    total_detections: int
    dominant_emotion: Optional[str] = None
    summary: List[EmotionSummaryResponse]


class UserSummary(BaseModel):
    user_id: int
    total_detections: int
    dominant_emotion: Optional[str] = None
    summary: List[EmotionSummaryResponse]


class EmotionStat(BaseModel):
    emotion_type: str
    count: int
    avg_confidence: float
    min_confidence: float
    max_confidence: float
    unique_sessions: int


class EmotionDescriptorResponse(BaseModel):
    emotion_type: str
    description: str
    icon: str
    color: str
    secondary_emotions: List[str]
    recommendations: List[str]


class EmotionFeed(BaseModel):
    """Most recent observations, newest first."""
    emotions: List[EmotionResponse]
    count: int


class TimelinePoint(BaseModel):
    date: str
    emotion_type: str
    count: int
    avg_confidence: float
