from sqlalchemy import Column, Integer, String, DateTime, Boolean, ForeignKey, JSON
from sqlalchemy.orm import relationship

from emotion_recognition.core.database import Base
from emotion_recognition.utils.time_utils import utc_now


class Image(Base):
    """
    A captured or uploaded frame stored on disk.
    Deleting an image nulls emotions.image_id instead of removing observations.
    """

    __tablename__ = "images"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=True, index=True)
    session_id = Column(Integer, ForeignKey("sessions.id", ondelete="CASCADE"), nullable=True, index=True)

    filename = Column(String(255), nullable=False)
    original_filename = Column(String(255), nullable=True)
    file_path = Column(String(500), nullable=False)
    file_size = Column(Integer, nullable=True)
    mime_type = Column(String(50), nullable=True)
    width = Column(Integer, nullable=True)
    height = Column(Integer, nullable=True)
    upload_timestamp = Column(DateTime(timezone=True), default=utc_now)
    is_processed = Column(Boolean, default=False, nullable=False)
    processing_status = Column(String(50), default="pending", nullable=False)

    # "metadata" is reserved on declarative classes
    image_metadata = Column("metadata", JSON, nullable=True)
    thumbnail_path = Column(String(500), nullable=True)

    session = relationship("DetectionSession", back_populates="images")

    # passive_deletes leaves the SET NULL to the database
    emotions = relationship("Emotion", back_populates="image", passive_deletes=True)

    def __repr__(self) -> str:
        return f"<Image(id={self.id}, filename={self.filename})>"
