import uuid
from datetime import datetime
from sqlalchemy import Column, String, Float, TIMESTAMP, ForeignKey, Text
from sqlalchemy.orm import relationship
from .database import Base


class Meeting(Base):
    __tablename__ = "meetings"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    title = Column(String, nullable=False)
    audio_file_path = Column(String)
    transcription = Column(Text)  # Raw speech-to-text output
    transcription_with_speaker = Column(Text)  # Reviewed / edited, speaker-tagged copy
    language = Column(String, default="en")
    duration_seconds = Column(Float, nullable=True)
    created_at = Column(TIMESTAMP, default=datetime.utcnow)
    updated_at = Column(TIMESTAMP, default=datetime.utcnow, onupdate=datetime.utcnow)

    summaries = relationship(
        "Summary",
        back_populates="meeting",
        cascade="all, delete-orphan",
        order_by="Summary.created_at",
    )


class Summary(Base):
    __tablename__ = "summaries"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    meeting_id = Column(String, ForeignKey("meetings.id", ondelete="CASCADE"), nullable=False, index=True)
    content = Column(Text)
    provider = Column(String)
    model_used = Column(String)
    created_at = Column(TIMESTAMP, default=datetime.utcnow)

    meeting = relationship("Meeting", back_populates="summaries")


class Setting(Base):
    """Key/value application settings edited from the UI."""
    __tablename__ = "settings"

    key = Column(String, primary_key=True)
    value = Column(Text)
