import os
import logging
import mimetypes
from typing import Optional

import httpx

from ..core.config import settings
from ..core.prompts import DEFAULT_INITIAL_PROMPT
from ..core.text_utils import format_segment_lines
from .health_service import SystemHealthService, ServiceStatus

logger = logging.getLogger(__name__)


class TranscriptionError(Exception):
    """Raised when the speech-to-text service cannot produce a transcript."""


class WhisperAsrClient:
    """
    Client for a Whisper ASR web service (`POST /asr`).

    Returns the transcript as newline-separated `[HH:MM:SS] text` lines, one
    per recognized segment. Speaker tags are added later by review or editing.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: float = settings.TRANSCRIPTION_TIMEOUT_SECONDS,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = (base_url or settings.WHISPER_BASE_URL).rstrip("/")
        self.timeout = timeout
        self.transport = transport
        self.health = SystemHealthService()

    def build_params(self, language: Optional[str], initial_prompt: Optional[str]) -> dict:
        return {
            "task": "transcribe",
            "language": language or "auto",
            "output": "json",
            "word_timestamps": "true",
            "initial_prompt": initial_prompt or DEFAULT_INITIAL_PROMPT,
        }

    async def transcribe(self, audio_path: str, language: Optional[str] = None, initial_prompt: Optional[str] = None) -> str:
        if not os.path.exists(audio_path):
            raise TranscriptionError(f"Audio file not found: {audio_path}")

        params = self.build_params(language, initial_prompt)
        content_type = mimetypes.guess_type(audio_path)[0] or "audio/wav"
        url = f"{self.base_url}/asr"

        logger.info(f"Transcribing {os.path.basename(audio_path)} via {url} (language={params['language']})")
        try:
            async with httpx.AsyncClient(transport=self.transport, timeout=self.timeout) as client:
                with open(audio_path, "rb") as audio_file:
                    response = await client.post(
                        url,
                        params=params,
                        files={"audio_file": (os.path.basename(audio_path), audio_file, content_type)},
                    )
                response.raise_for_status()
                data = response.json()
        except httpx.HTTPStatusError as e:
            logger.error(f"ASR service returned {e.response.status_code}: {e.response.text[:500]}")
            self.health.set_transcriber_status(ServiceStatus.ERROR, f"HTTP {e.response.status_code}")
            raise TranscriptionError(f"Transcription service returned HTTP {e.response.status_code}") from e
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"ASR request failed: {type(e).__name__}: {e}")
            self.health.set_transcriber_status(ServiceStatus.UNAVAILABLE, str(e))
            raise TranscriptionError(f"Failed to reach transcription service: {e}") from e

        text = self.format_response(data)
        if text is None:
            self.health.set_transcriber_status(ServiceStatus.ERROR, "Invalid response format")
            raise TranscriptionError("Invalid response format from transcription service")

        self.health.set_transcriber_status(ServiceStatus.READY)
        logger.info(f"✅ Transcription complete ({len(text.splitlines())} lines)")
        return text

    async def check_connection(self, timeout: float = 5.0) -> bool:
        """Any answer below 500 means the ASR service is up."""
        logger.info(f"🔍 Checking ASR service at {self.base_url}")
        try:
            async with httpx.AsyncClient(transport=self.transport, timeout=timeout) as client:
                response = await client.get(f"{self.base_url}/")
        except httpx.HTTPError as e:
            logger.warning(f"⚠️  ASR service unreachable: {e}")
            self.health.set_transcriber_status(ServiceStatus.UNAVAILABLE, str(e))
            return False

        if response.status_code < 500:
            logger.info("✅ ASR service reachable")
            self.health.set_transcriber_status(ServiceStatus.READY)
            return True

        logger.warning(f"⚠️  ASR service returned status {response.status_code}")
        self.health.set_transcriber_status(ServiceStatus.ERROR, f"HTTP {response.status_code}")
        return False

    @staticmethod
    def format_response(data) -> Optional[str]:
        """Segments become timestamped lines; a bare `text` reply is used as-is."""
        if isinstance(data, dict):
            segments = data.get("segments")
            if isinstance(segments, list) and segments:
                return format_segment_lines(s for s in segments if isinstance(s, dict))
            if isinstance(data.get("text"), str):
                return data["text"].strip()
        return None
