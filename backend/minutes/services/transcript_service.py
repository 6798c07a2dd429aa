import logging
from typing import Dict, List, Optional, Tuple

from sqlalchemy.orm import Session

from ..core import transcript_codec as codec
from ..core.export import rows_to_csv, export_filename
from ..models import Meeting
from .persistence_service import PersistenceService

logger = logging.getLogger(__name__)


class TranscriptService:
    """
    Row-level view of a meeting's editable transcript
    (`transcription_with_speaker`), backed by the transcript codec.
    """

    def __init__(self, db: Session):
        self.db = db
        self.persistence = PersistenceService(db)

    @staticmethod
    def get_rows(meeting: Meeting) -> Tuple[List[codec.TranscriptRow], List[str]]:
        """Parsed rows and sorted speaker suggestions."""
        rows = codec.parse_transcript(meeting.transcription_with_speaker)
        return rows, sorted(codec.distinct_speakers(rows))

    def update_row(self, meeting: Meeting, index: int, speaker: Optional[str], content: str) -> Dict:
        """
        Replaces the speaker and content of one row and persists the new text.
        Blank lines are kept; only the row's own source line is rewritten.
        """
        text = meeting.transcription_with_speaker or ""
        rows = codec.parse_transcript(text)
        lines = codec.split_lines(text)

        # Row i comes from the i-th non-blank line
        row_lines = [i for i, line in enumerate(lines) if line.strip()]
        if index < 0 or index >= len(row_lines):
            raise IndexError(f"Transcript row {index} out of range")
        line_index = row_lines[index]

        rows, lines, full_text = codec.update_row(rows, lines, index, speaker, content, line_index=line_index)
        self.persistence.set_transcription_with_speaker(meeting.id, full_text)
        logger.info(f"Updated row {index} (line {line_index}) of meeting {meeting.id}")

        return {
            "index": index,
            "row": rows[index],
            "line": lines[line_index],
            "transcription_with_speaker": full_text,
        }

    @staticmethod
    def segment_window(meeting: Meeting, index: int, duration: Optional[float] = None) -> Tuple[int, Optional[float]]:
        rows = codec.parse_transcript(meeting.transcription_with_speaker)
        total = duration if duration is not None else meeting.duration_seconds
        return codec.resolve_segment_window(rows, index, total)

    @staticmethod
    def export_csv(meeting: Meeting) -> Tuple[str, str]:
        """Download filename and CSV body for the meeting's rows."""
        rows = codec.parse_transcript(meeting.transcription_with_speaker)
        return export_filename(meeting.title), rows_to_csv(rows)
