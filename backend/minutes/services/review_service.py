import logging
from typing import Optional

import httpx
from sqlalchemy.orm import Session

from ..core.llm import build_llm_client
from ..core.prompts import REVIEW_SYSTEM_PROMPT, REVIEW_TEMPERATURE, build_review_prompt
from ..core.text_utils import strip_reasoning_tags
from ..models import Meeting
from .persistence_service import PersistenceService
from .settings_service import SettingsService, KNOWN_SETTING_KEYS
from .summarizer_service import MissingTranscriptError

logger = logging.getLogger(__name__)


class ReviewService:
    """Light-touch LLM cleanup of a meeting transcript."""

    def __init__(self, db: Session, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.db = db
        self.persistence = PersistenceService(db)
        self.settings = SettingsService(db)
        self.transport = transport

    async def review(self, meeting: Meeting) -> str:
        """
        Sends the speaker-tagged transcript (or the raw one when no tagged copy
        exists) for review and stores the cleaned reply as the new tagged copy.
        """
        transcript = meeting.transcription_with_speaker or meeting.transcription
        if not transcript:
            raise MissingTranscriptError("No transcription available for review")

        settings_map = self.settings.get_many(KNOWN_SETTING_KEYS)
        llm = build_llm_client(settings_map, transport=self.transport)

        logger.info(f"Reviewing transcript for {meeting.id} with {llm.provider}/{llm.model}")
        reply = await llm.chat(
            build_review_prompt(transcript, settings_map.get("review_prompt") or None),
            system_prompt=REVIEW_SYSTEM_PROMPT,
            temperature=REVIEW_TEMPERATURE,
        )

        reviewed = strip_reasoning_tags(reply)
        self.persistence.set_transcription_with_speaker(meeting.id, reviewed)
        return reviewed
