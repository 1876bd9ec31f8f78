from pydantic import AliasChoices, BaseModel, Field
from typing import List, Optional
from datetime import datetime


class SessionBase(BaseModel):
    device_info: Optional[str] = Field(
        None,
        max_length=500,
        validation_alias=AliasChoices("device_info", "deviceInfo"),
    )
    ip_address: Optional[str] = Field(
        None,
        max_length=45,
        validation_alias=AliasChoices("ip_address", "ipAddress"),
    )
    location: Optional[str] = Field(None, max_length=255)


class SessionCreate(SessionBase):
    session_name: str = Field(
        ...,
        min_length=3,
        max_length=100,
        validation_alias=AliasChoices("session_name", "sessionName"),
        description="Human readable name of the recording"
    )


class SessionUpdate(SessionBase):
    """Metadata edits. Counters and close state are not editable here."""
    session_name: Optional[str] = Field(
        None,
        min_length=3,
        max_length=100,
        validation_alias=AliasChoices("session_name", "sessionName"),
    )


class SessionClose(BaseModel):
    """
    Payload for ending a session.

    total_detections is what the client counted; the server keeps its own
    count of stored observations and only logs a mismatch.
    """
    end_time: Optional[datetime] = Field(
        None,
        validation_alias=AliasChoices("end_time", "endTime"),
        description="Defaults to the server's current time"
    )
    total_detections: Optional[int] = Field(
        None,
        ge=0,
        validation_alias=AliasChoices("total_detections", "totalDetections"),
    )
    accuracy: Optional[float] = Field(None, ge=0.0, le=1.0)


class SessionResponse(BaseModel):
    id: int
    user_id: Optional[int] = None
    session_name: str
    start_time: datetime
    end_time: Optional[datetime] = None
    duration_seconds: Optional[int] = None
    total_detections: int
    accuracy_score: Optional[float] = None
    device_info: Optional[str] = None
    ip_address: Optional[str] = None
    location: Optional[str] = None
    is_completed: bool

    class Config:
        from_attributes = True


class SessionPage(BaseModel):
    sessions: List[SessionResponse]
    limit: int
    offset: int
    total: int
