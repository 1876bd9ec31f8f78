from sqlalchemy import Column, Integer, String, DateTime, Boolean
from sqlalchemy.orm import relationship

from emotion_recognition.core.database import Base
from emotion_recognition.utils.time_utils import utc_now


class User(Base):
    """
    SQLAlchemy model for the users table.
    Accounts are soft-deactivated through is_active and never hard deleted
    by the API, so the history of their sessions stays intact.
    """
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    username = Column(String(50), unique=True, index=True, nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)
    hashed_password = Column(String(255), nullable=False)
    full_name = Column(String(100), nullable=True)
    avatar_url = Column(String(500), nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    last_login = Column(DateTime(timezone=True), nullable=True)

    # One-To-Many relationship
    sessions = relationship(
        "DetectionSession",
        back_populates="user",
        cascade="all, delete-orphan",
        passive_deletes=True
    )

    # Metadata for auditing and tracking
    created_at = Column(DateTime(timezone=True), default=utc_now)
    updated_at = Column(DateTime(timezone=True), default=utc_now, onupdate=utc_now)

    def __repr__(self):
        return f"<User(username={self.username}, email={self.email})>"
