"""Shared text cleaning and formatting utilities."""
import re
from datetime import datetime
from typing import Iterable, Optional

from .config import LLM_METADATA_TAGS
from .transcript_codec import seconds_to_timestamp

_METADATA_BLOCKS = [
    re.compile(rf"<{tag}>.*?</{tag}>", re.DOTALL | re.IGNORECASE)
    for tag in LLM_METADATA_TAGS
]
_EXCESS_NEWLINES = re.compile(r"\n{3,}")


def strip_reasoning_tags(text: Optional[str]) -> str:
    """
    Remove <think>...</think> style blocks emitted by local models.
    Also collapses runs of blank lines left behind by the removal.
    """
    if not text:
        return ""

    for pattern in _METADATA_BLOCKS:
        text = pattern.sub("", text)

    return _EXCESS_NEWLINES.sub("\n\n", text).strip()


def format_segment_lines(segments: Iterable[dict]) -> str:
    """
    Format ASR segments as `[HH:MM:SS] text` lines.
    Segments without text are skipped.
    """
    lines = []
    for segment in segments:
        text = (segment.get("text") or "").strip()
        if not text:
            continue
        start = segment.get("start") or 0
        lines.append(f"[{seconds_to_timestamp(start)}] {text}")
    return "\n".join(lines)


def default_meeting_title(now: Optional[datetime] = None) -> str:
    """Title used when an upload does not name the meeting."""
    now = now or datetime.utcnow()
    return f"Meeting {now.strftime('%Y-%m-%d')}"
