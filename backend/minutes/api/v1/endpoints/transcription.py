import logging
from typing import Optional
from urllib.parse import quote

import httpx
from fastapi import APIRouter, Depends, HTTPException, Query, Response
from sqlalchemy.orm import Session

from .... import schemas
from ....core.llm import LlmError, LlmConfigurationError
from ....database import get_db
from ....models import Meeting
from ....services.persistence_service import PersistenceService
from ....services.review_service import ReviewService
from ....services.settings_service import SettingsService
from ....services.summarizer_service import MissingTranscriptError
from ....services.transcript_service import TranscriptService
from ....services.transcription import WhisperAsrClient, TranscriptionError
from ..deps import get_http_transport, get_meeting_or_404

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/meeting/{meeting_id}/transcription", response_model=schemas.TranscriptionResponse)
async def transcribe_meeting(
    meeting: Meeting = Depends(get_meeting_or_404),
    db: Session = Depends(get_db),
    transport: Optional[httpx.AsyncBaseTransport] = Depends(get_http_transport),
):
    """
    Transcribes the meeting's recording once. A stored transcription is
    returned as-is without calling the ASR service again.
    """
    if meeting.transcription:
        return {"message": "Transcription already exists", "transcription": meeting.transcription}
    if not meeting.audio_file_path:
        raise HTTPException(status_code=400, detail="Meeting has no audio file")

    stored = SettingsService(db)
    client = WhisperAsrClient(base_url=stored.get("whisper_base_path") or None, transport=transport)
    try:
        text = await client.transcribe(meeting.audio_file_path, meeting.language, stored.get("initial_prompt"))
    except TranscriptionError as e:
        logger.error(f"Transcription failed for {meeting.id}: {e}")
        raise HTTPException(status_code=502, detail=str(e))

    PersistenceService(db).set_transcription(meeting.id, text, with_speaker=text)
    return {"message": "Transcription completed successfully", "transcription": text}


@router.get("/meeting/{meeting_id}/transcription")
async def get_transcription(meeting: Meeting = Depends(get_meeting_or_404)):
    return {"transcription": meeting.transcription or ""}


@router.post("/meeting/{meeting_id}/transcription/update")
async def update_transcription(
    request: schemas.TranscriptionUpdateRequest,
    meeting: Meeting = Depends(get_meeting_or_404),
    db: Session = Depends(get_db),
):
    PersistenceService(db).set_transcription(meeting.id, request.transcription)
    return {"message": "Transcription updated successfully"}


@router.get("/meeting/{meeting_id}/transcription-with-speaker")
async def get_transcription_with_speaker(meeting: Meeting = Depends(get_meeting_or_404)):
    return {"transcription_with_speaker": meeting.transcription_with_speaker or ""}


@router.post("/meeting/{meeting_id}/transcription-with-speaker")
@router.post("/meeting/{meeting_id}/transcription-with-speaker/update")
async def update_transcription_with_speaker(
    request: schemas.SpeakerTranscriptionUpdateRequest,
    meeting: Meeting = Depends(get_meeting_or_404),
    db: Session = Depends(get_db),
):
    PersistenceService(db).set_transcription_with_speaker(meeting.id, request.transcription_with_speaker)
    return {"message": "Transcription with speaker updated successfully"}


@router.post("/meeting/{meeting_id}/transcription/review")
async def review_transcription(
    meeting: Meeting = Depends(get_meeting_or_404),
    db: Session = Depends(get_db),
    transport: Optional[httpx.AsyncBaseTransport] = Depends(get_http_transport),
):
    try:
        reviewed = await ReviewService(db, transport=transport).review(meeting)
    except (MissingTranscriptError, LlmConfigurationError) as e:
        raise HTTPException(status_code=400, detail=str(e))
    except LlmError as e:
        raise HTTPException(status_code=502, detail=str(e))

    return {"message": "Transcription reviewed successfully", "transcription_with_speaker": reviewed}


# Row editing

@router.get("/meeting/{meeting_id}/transcript/rows", response_model=schemas.TranscriptRowsResponse)
async def get_transcript_rows(meeting: Meeting = Depends(get_meeting_or_404)):
    rows, speakers = TranscriptService.get_rows(meeting)
    return {"rows": [row.to_dict() for row in rows], "speakers": speakers}


@router.patch("/meeting/{meeting_id}/transcript/rows/{index}", response_model=schemas.RowUpdateResponse)
async def update_transcript_row(
    index: int,
    request: schemas.RowUpdateRequest,
    meeting: Meeting = Depends(get_meeting_or_404),
    db: Session = Depends(get_db),
):
    try:
        result = TranscriptService(db).update_row(meeting, index, request.speaker or "", request.content)
    except IndexError:
        raise HTTPException(status_code=404, detail=f"Row {index} not found")

    result["row"] = result["row"].to_dict()
    return result


@router.get("/meeting/{meeting_id}/transcript/rows/{index}/window", response_model=schemas.SegmentWindowResponse)
async def get_segment_window(
    index: int,
    duration: Optional[float] = Query(None, ge=0),
    meeting: Meeting = Depends(get_meeting_or_404),
):
    """Playback window for one row: its timestamp up to the next timed row."""
    try:
        start, end = TranscriptService.segment_window(meeting, index, duration)
    except IndexError:
        raise HTTPException(status_code=404, detail=f"Row {index} not found")
    return {"index": index, "start_seconds": start, "end_seconds": end}


@router.get("/meeting/{meeting_id}/export")
async def export_transcript(meeting: Meeting = Depends(get_meeting_or_404)):
    filename, body = TranscriptService.export_csv(meeting)
    ascii_name = filename.encode("ascii", "ignore").decode().replace('"', "") or "meeting.csv"
    disposition = f"attachment; filename=\"{ascii_name}\"; filename*=UTF-8''{quote(filename)}"
    return Response(
        content=body,
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": disposition},
    )
