from sqlalchemy import Column, Integer, String, Float, DateTime, ForeignKey, JSON
from sqlalchemy.orm import relationship

from emotion_recognition.core.database import Base
from emotion_recognition.utils.time_utils import utc_now


class Emotion(Base):
    """
    SQLAlchemy model for a single emotion observation.
    Rows are only written through the session aggregator, which keeps the
    owning session's counters and summaries in step.
    """
    __tablename__ = "emotions"

    id = Column(Integer, primary_key=True, index=True)

    # CASCADE ensures that if a session is deleted, its observations are purged.
    session_id = Column(Integer, ForeignKey("sessions.id", ondelete="CASCADE"), nullable=False, index=True)

    emotion_type = Column(String(50), nullable=False, index=True)

    # Score in [0, 1] reported by the inference adapter
    confidence_score = Column(Float, nullable=False)

    # Server time, never the client's clock
    timestamp = Column(DateTime(timezone=True), default=utc_now, nullable=False, index=True)

    # Bounding box {x, y, width, height} of the detected face
    face_coordinates = Column(JSON, nullable=True)

    age_estimate = Column(Integer, nullable=True)
    gender_estimate = Column(String(10), nullable=True)

    # SET NULL: an image may outlive the observation link
    image_id = Column(Integer, ForeignKey("images.id", ondelete="SET NULL"), nullable=True, index=True)

    processing_time_ms = Column(Integer, nullable=True)

    # Raw adapter output, stored verbatim for audit and never parsed
    raw_data = Column(JSON, nullable=True)

    session = relationship("DetectionSession", back_populates="emotions")
    image = relationship("Image", back_populates="emotions")

    def __repr__(self) -> str:
        return f"<Emotion(id={self.id}, session_id={self.session_id}, type={self.emotion_type})>"
