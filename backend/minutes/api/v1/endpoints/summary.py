import logging
from typing import Optional

import httpx
from fastapi import APIRouter, Body, Depends, HTTPException
from sqlalchemy.orm import Session

from .... import schemas
from ....core.llm import LlmError, LlmConfigurationError
from ....database import get_db
from ....models import Meeting
from ....services.persistence_service import PersistenceService
from ....services.summarizer_service import SummarizerService, MissingTranscriptError
from ..deps import get_http_transport, get_meeting_or_404

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/summary/{meeting_id}", response_model=schemas.SummaryResponse)
async def generate_summary(
    request: Optional[schemas.SummaryRequest] = Body(None),
    meeting: Meeting = Depends(get_meeting_or_404),
    db: Session = Depends(get_db),
    transport: Optional[httpx.AsyncBaseTransport] = Depends(get_http_transport),
):
    prompt = request.prompt if request else None
    try:
        summary = await SummarizerService(db, transport=transport).generate_summary(meeting, prompt=prompt)
    except (MissingTranscriptError, LlmConfigurationError) as e:
        raise HTTPException(status_code=400, detail=str(e))
    except LlmError as e:
        logger.error(f"Summary generation failed for {meeting.id}: {e}")
        raise HTTPException(status_code=502, detail=str(e))

    return {"summary": summary.content}


@router.get("/meeting/{meeting_id}/summary", response_model=schemas.SummaryResponse)
async def get_summary(meeting: Meeting = Depends(get_meeting_or_404), db: Session = Depends(get_db)):
    latest = PersistenceService(db).get_latest_summary(meeting.id)
    return {"summary": latest.content if latest else None}
