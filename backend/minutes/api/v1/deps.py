from typing import Optional

import httpx
from fastapi import Depends, HTTPException
from sqlalchemy.orm import Session

from ...database import get_db
from ...models import Meeting
from ...services.persistence_service import PersistenceService


def get_http_transport() -> Optional[httpx.AsyncBaseTransport]:
    """Transport for ASR and LLM calls. None means the real network."""
    return None


def get_meeting_or_404(meeting_id: str, db: Session = Depends(get_db)) -> Meeting:
    meeting = PersistenceService(db).get_meeting(meeting_id)
    if not meeting:
        raise HTTPException(status_code=404, detail="Meeting not found")
    return meeting
