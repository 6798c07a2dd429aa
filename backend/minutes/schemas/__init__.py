"""Schemas package for data validation and serialization."""
from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import List, Optional
from datetime import datetime

from ..core.config import SUPPORTED_LANGUAGES


class MeetingListItem(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    title: str
    audio_file_path: Optional[str] = None
    language: Optional[str] = None
    duration_seconds: Optional[float] = None
    created_at: datetime
    updated_at: Optional[datetime] = None


class MeetingResponse(MeetingListItem):
    transcription: Optional[str] = None
    transcription_with_speaker: Optional[str] = None
    audio_url: Optional[str] = None


class MeetingOverview(BaseModel):
    """Meeting without transcript or file path fields, plus the latest summary."""
    meeting: dict
    summary: str = ""


class UploadResponse(BaseModel):
    meetingId: str
    title: str
    audioPath: str
    message: str = "Audio file uploaded successfully"


class MeetingUpdateRequest(BaseModel):
    language: Optional[str] = None
    title: Optional[str] = Field(None, min_length=1, max_length=255)

    @field_validator("language")
    @classmethod
    def validate_language(cls, v):
        if v is not None and v not in SUPPORTED_LANGUAGES:
            raise ValueError("Invalid language code")
        return v


class TranscriptionUpdateRequest(BaseModel):
    transcription: str = ""


class SpeakerTranscriptionUpdateRequest(BaseModel):
    transcription_with_speaker: str = ""


class TranscriptionResponse(BaseModel):
    message: str
    transcription: str


class TranscriptRowSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    timestamp: str
    speaker: str
    content: str


class TranscriptRowsResponse(BaseModel):
    rows: List[TranscriptRowSchema]
    speakers: List[str]


class RowUpdateRequest(BaseModel):
    speaker: Optional[str] = ""
    content: str = ""


class RowUpdateResponse(BaseModel):
    index: int
    row: TranscriptRowSchema
    line: str
    transcription_with_speaker: str


class SegmentWindowResponse(BaseModel):
    index: int
    start_seconds: int
    end_seconds: Optional[float] = None


class SummaryRequest(BaseModel):
    prompt: Optional[str] = None


class SummaryResponse(BaseModel):
    summary: Optional[str] = None
