import logging
from typing import Optional

import httpx
from sqlalchemy.orm import Session

from ..core.llm import build_llm_client
from ..core.prompts import build_summary_prompt, SUMMARY_TEMPERATURE
from ..core.text_utils import strip_reasoning_tags
from ..models import Meeting, Summary
from .persistence_service import PersistenceService
from .settings_service import SettingsService, KNOWN_SETTING_KEYS

logger = logging.getLogger(__name__)


class MissingTranscriptError(Exception):
    """Raised when a meeting has no transcript to work on."""


class SummarizerService:
    def __init__(self, db: Session, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.db = db
        self.persistence = PersistenceService(db)
        self.settings = SettingsService(db)
        self.transport = transport

    async def generate_summary(self, meeting: Meeting, prompt: Optional[str] = None) -> Summary:
        """
        Summarizes the speaker-tagged transcript with the configured provider
        and stores the result as the meeting's newest summary.

        Prompt precedence: explicit `prompt`, then the `summary_prompt`
        setting, then the built-in minutes template.
        """
        if not meeting.transcription_with_speaker:
            raise MissingTranscriptError("No transcription with speaker available for summary generation")

        settings_map = self.settings.get_many(KNOWN_SETTING_KEYS)
        llm = build_llm_client(settings_map, transport=self.transport)
        template = prompt or settings_map.get("summary_prompt") or None

        logger.info(f"Generating summary for {meeting.id} with {llm.provider}/{llm.model}")
        response_text = await llm.chat(
            build_summary_prompt(meeting.transcription_with_speaker, template),
            system_prompt="",
            temperature=SUMMARY_TEMPERATURE,
        )

        summary = self.persistence.add_summary(
            meeting.id,
            strip_reasoning_tags(response_text),
            provider=llm.provider,
            model_used=llm.model,
        )
        logger.info(f"✅ Summary saved for {meeting.id}")
        return summary
