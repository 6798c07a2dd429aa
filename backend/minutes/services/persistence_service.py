import logging
import os
import uuid
from datetime import datetime
from typing import Optional, List

from sqlalchemy.orm import Session

from ..models import Meeting, Summary
from ..core.text_utils import default_meeting_title

logger = logging.getLogger(__name__)


class PersistenceService:
    def __init__(self, db: Session):
        self.db = db

    def create_meeting(
        self,
        audio_path: str,
        title: Optional[str] = None,
        language: str = "en",
        duration_seconds: Optional[float] = None,
    ) -> Meeting:
        """Creates a meeting for an uploaded recording. The transcript starts empty."""
        meeting = Meeting(
            id=str(uuid.uuid4()),
            title=title or default_meeting_title(),
            audio_file_path=audio_path,
            language=language,
            duration_seconds=duration_seconds,
            transcription_with_speaker="",
        )
        self.db.add(meeting)
        self.db.commit()
        self.db.refresh(meeting)
        logger.info(f"Created meeting {meeting.id} ({meeting.title})")
        return meeting

    def list_meetings(self) -> List[Meeting]:
        return self.db.query(Meeting).order_by(Meeting.created_at.desc()).all()

    def get_meeting(self, meeting_id: str) -> Optional[Meeting]:
        return self.db.query(Meeting).filter(Meeting.id == meeting_id).first()

    def update_meeting(self, meeting_id: str, language: Optional[str] = None, title: Optional[str] = None) -> Optional[Meeting]:
        meeting = self.get_meeting(meeting_id)
        if not meeting:
            return None
        if language is not None:
            meeting.language = language
        if title is not None:
            meeting.title = title
        meeting.updated_at = datetime.utcnow()
        self.db.commit()
        self.db.refresh(meeting)
        return meeting

    def set_transcription(self, meeting_id: str, transcription: str, with_speaker: Optional[str] = None) -> Optional[Meeting]:
        """
        Stores the raw transcript. When `with_speaker` is given, the editable
        speaker-tagged copy is replaced as well.
        """
        meeting = self.get_meeting(meeting_id)
        if not meeting:
            return None
        meeting.transcription = transcription
        if with_speaker is not None:
            meeting.transcription_with_speaker = with_speaker
        meeting.updated_at = datetime.utcnow()
        self.db.commit()
        self.db.refresh(meeting)
        return meeting

    def set_transcription_with_speaker(self, meeting_id: str, text: str) -> Optional[Meeting]:
        """Last write wins; there is no conflict detection."""
        meeting = self.get_meeting(meeting_id)
        if not meeting:
            return None
        meeting.transcription_with_speaker = text
        meeting.updated_at = datetime.utcnow()
        self.db.commit()
        self.db.refresh(meeting)
        return meeting

    def delete_meeting(self, meeting_id: str) -> bool:
        """Deletes the meeting, its summaries and its audio file."""
        meeting = self.get_meeting(meeting_id)
        if not meeting:
            return False

        audio_path = meeting.audio_file_path
        try:
            self.db.delete(meeting)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        if audio_path and os.path.exists(audio_path):
            try:
                os.remove(audio_path)
            except OSError as e:
                logger.error(f"Failed to delete audio file {audio_path}: {e}")

        logger.info(f"Deleted meeting {meeting_id}")
        return True

    def add_summary(self, meeting_id: str, content: str, provider: Optional[str] = None, model_used: Optional[str] = None) -> Summary:
        summary = Summary(
            id=str(uuid.uuid4()),
            meeting_id=meeting_id,
            content=content,
            provider=provider,
            model_used=model_used,
            created_at=datetime.utcnow(),
        )
        self.db.add(summary)
        self.db.commit()
        self.db.refresh(summary)
        return summary

    def get_latest_summary(self, meeting_id: str) -> Optional[Summary]:
        return (
            self.db.query(Summary)
            .filter(Summary.meeting_id == meeting_id)
            .order_by(Summary.created_at.desc())
            .first()
        )
