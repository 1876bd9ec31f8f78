from sqlalchemy import Column, Integer, String, Float, DateTime, Boolean, ForeignKey
from sqlalchemy.orm import relationship

from emotion_recognition.core.database import Base
from emotion_recognition.utils.time_utils import utc_now


class DetectionSession(Base):
    """
    A bounded recording interval that aggregates emotion observations.

    total_detections is maintained by the session aggregator and always equals
    the sum of the counts of this session's emotion summaries.
    duration_seconds is derived once, when the session is closed.
    """

    __tablename__ = "sessions"

    id = Column(Integer, primary_key=True, index=True)

    # Nullable: anonymous sessions have no owner.
    # CASCADE removes the recording history together with the user row.
    user_id = Column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=True,
        index=True
    )

    session_name = Column(String(255), nullable=False)
    start_time = Column(DateTime(timezone=True), default=utc_now, nullable=False, index=True)
    end_time = Column(DateTime(timezone=True), nullable=True)
    duration_seconds = Column(Integer, nullable=True)
    total_detections = Column(Integer, default=0, nullable=False)
    accuracy_score = Column(Float, nullable=True)
    device_info = Column(String(500), nullable=True)
    ip_address = Column(String(45), nullable=True)
    location = Column(String(255), nullable=True)
    is_completed = Column(Boolean, default=False, nullable=False)

    user = relationship("User", back_populates="sessions")

    emotions = relationship(
        "Emotion",
        back_populates="session",
        cascade="all, delete-orphan",
        passive_deletes=True
    )
    summaries = relationship(
        "EmotionSummary",
        back_populates="session",
        cascade="all, delete-orphan",
        passive_deletes=True
    )
    images = relationship(
        "Image",
        back_populates="session",
        cascade="all, delete-orphan",
        passive_deletes=True
    )

    @property
    def is_open(self) -> bool:
        return self.end_time is None

    def __repr__(self) -> str:
        return (
            f"<DetectionSession("
            f"id={self.id}, "
            f"user_id={self.user_id}, "
            f"total_detections={self.total_detections})>"
        )
