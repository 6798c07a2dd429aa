import os
import asyncio
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile
from sqlalchemy.orm import Session

from .... import schemas
from ....core.config import SUPPORTED_LANGUAGES
from ....database import get_db
from ....models import Meeting
from ....services.audio_service import AudioService, UploadTooLargeError
from ....services.persistence_service import PersistenceService
from ..deps import get_meeting_or_404

logger = logging.getLogger(__name__)

router = APIRouter()


def audio_url_for(meeting: Meeting) -> Optional[str]:
    if not meeting.audio_file_path:
        return None
    return f"/uploads/{os.path.basename(meeting.audio_file_path)}"


@router.get("/meetings", response_model=List[schemas.MeetingListItem])
async def list_meetings(db: Session = Depends(get_db)):
    return PersistenceService(db).list_meetings()


@router.get("/meetings/{meeting_id}", response_model=schemas.MeetingResponse)
async def get_meeting_record(meeting: Meeting = Depends(get_meeting_or_404)):
    return meeting


@router.post("/upload", response_model=schemas.UploadResponse)
async def upload_audio(
    audio: UploadFile = File(...),
    title: Optional[str] = Form(None),
    language: str = Form("en"),
    db: Session = Depends(get_db),
):
    """
    Stores an uploaded recording and creates its meeting.

    Only `audio/*` uploads are accepted. The duration is probed once here so
    the last transcript row has a playback window end.
    """
    if not (audio.content_type or "").startswith("audio/"):
        raise HTTPException(status_code=400, detail="Only audio files are allowed")
    if language not in SUPPORTED_LANGUAGES:
        raise HTTPException(status_code=400, detail="Invalid language code")

    audio_service = AudioService()
    try:
        audio_path = audio_service.save_upload(audio.file, audio.filename)
    except UploadTooLargeError as e:
        raise HTTPException(status_code=413, detail=str(e))

    duration = await asyncio.to_thread(AudioService.probe_duration, audio_path)
    meeting = PersistenceService(db).create_meeting(
        audio_path,
        title=(title or "").strip() or None,
        language=language,
        duration_seconds=duration,
    )

    return {"meetingId": meeting.id, "title": meeting.title, "audioPath": audio_path}


@router.get("/meeting/{meeting_id}", response_model=schemas.MeetingResponse)
async def get_meeting(meeting: Meeting = Depends(get_meeting_or_404)):
    response = schemas.MeetingResponse.model_validate(meeting)
    response.audio_url = audio_url_for(meeting)
    return response


@router.get("/meeting/{meeting_id}/all", response_model=schemas.MeetingOverview)
async def get_meeting_overview(meeting: Meeting = Depends(get_meeting_or_404), db: Session = Depends(get_db)):
    """Public meeting fields plus the latest summary."""
    latest = PersistenceService(db).get_latest_summary(meeting.id)
    public = schemas.MeetingListItem.model_validate(meeting).model_dump(mode="json", exclude={"audio_file_path"})
    return {"meeting": public, "summary": latest.content if latest else ""}


@router.patch("/meeting/{meeting_id}", response_model=schemas.MeetingResponse)
async def update_meeting(
    request: schemas.MeetingUpdateRequest,
    meeting: Meeting = Depends(get_meeting_or_404),
    db: Session = Depends(get_db),
):
    if request.language is None and request.title is None:
        raise HTTPException(status_code=400, detail="Nothing to update")

    updated = PersistenceService(db).update_meeting(meeting.id, language=request.language, title=request.title)
    return updated


@router.delete("/meeting/{meeting_id}")
async def delete_meeting(meeting: Meeting = Depends(get_meeting_or_404), db: Session = Depends(get_db)):
    meeting_id = meeting.id
    PersistenceService(db).delete_meeting(meeting_id)
    return {"message": "Meeting deleted successfully", "id": meeting_id}
