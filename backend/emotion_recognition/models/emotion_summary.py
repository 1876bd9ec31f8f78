from sqlalchemy import Column, Integer, String, Float, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship

from emotion_recognition.core.database import Base


class EmotionSummary(Base):
    """
    Derived per-label rollup of a session's observations.

    One row per (session, emotion_type) actually observed. Rows whose count
    drops to zero are deleted, so sum(count) over a session always equals
    sessions.total_detections.
    """

    __tablename__ = "emotion_summaries"
    __table_args__ = (
        UniqueConstraint("session_id", "emotion_type", name="uq_summary_session_emotion"),
    )

    id = Column(Integer, primary_key=True, index=True)

    # Copied from the owning session for per-user rollups
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=True, index=True)
    session_id = Column(Integer, ForeignKey("sessions.id", ondelete="CASCADE"), nullable=False, index=True)

    emotion_type = Column(String(50), nullable=False)
    count = Column(Integer, default=0, nullable=False)
    average_confidence = Column(Float, nullable=True)
    first_detected = Column(DateTime(timezone=True), nullable=True)
    last_detected = Column(DateTime(timezone=True), nullable=True)
    percentage_of_total = Column(Float, nullable=True)

    session = relationship("DetectionSession", back_populates="summaries")

    def __repr__(self) -> str:
        return (
            f"<EmotionSummary("
            f"session_id={self.session_id}, "
            f"emotion_type={self.emotion_type}, "
            f"count={self.count})>"
        )
