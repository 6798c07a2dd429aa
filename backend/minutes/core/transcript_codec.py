"""
Transcript line codec.

Converts between the flat transcript format, one utterance per line:

    [HH:MM:SS] [speaker] content

and an ordered list of TranscriptRow objects, and back.
"""
from dataclasses import dataclass, field
from typing import List, Optional, Set, Tuple

DEFAULT_TIMESTAMP = "00:00:00"


@dataclass
class TranscriptRow:
    timestamp: str
    speaker: str
    content: str
    # True when the source line started with a [HH:MM:SS] token
    timed: bool = field(default=True, compare=False, repr=False)

    def to_dict(self) -> dict:
        return {"timestamp": self.timestamp, "speaker": self.speaker, "content": self.content}


def _is_timestamp(token: str) -> bool:
    """True for the exact lexical form HH:MM:SS (ASCII digits only)."""
    if len(token) != 8 or token[2] != ":" or token[5] != ":":
        return False
    digits = token[0:2] + token[3:5] + token[6:8]
    return all("0" <= ch <= "9" for ch in digits)


def _skip_whitespace(line: str, pos: int) -> int:
    while pos < len(line) and line[pos].isspace():
        pos += 1
    return pos


def _read_bracket(line: str, pos: int) -> Optional[Tuple[str, int]]:
    """
    Reads one `[...]` token starting at `pos`, allowing leading whitespace.

    Returns the interior text and the position after the token and its
    trailing whitespace, or None when no complete token starts there.
    """
    start = _skip_whitespace(line, pos)
    if start >= len(line) or line[start] != "[":
        return None
    close = line.find("]", start + 1)
    if close == -1:
        return None
    return line[start + 1:close], _skip_whitespace(line, close + 1)


def parse_line(line: str) -> TranscriptRow:
    """Tokenizes a single non-empty transcript line. Never raises."""
    pos = 0
    timestamp = DEFAULT_TIMESTAMP
    timed = False

    token = _read_bracket(line, pos)
    if token and _is_timestamp(token[0]):
        timestamp, pos = token
        timed = True

    speaker = ""
    token = _read_bracket(line, pos)
    if token:
        speaker = token[0].strip()
        pos = token[1]
        # Further leading tags are duplicate speaker tags and are dropped
        token = _read_bracket(line, pos)
        while token:
            pos = token[1]
            token = _read_bracket(line, pos)

    return TranscriptRow(
        timestamp=timestamp,
        speaker=speaker,
        content=line[pos:].strip(),
        timed=timed,
    )


def parse_transcript(text: Optional[str]) -> List[TranscriptRow]:
    """Parses flat transcript text into rows, skipping blank lines."""
    if not text:
        return []
    return [parse_line(line) for line in text.split("\n") if line.strip()]


def split_lines(text: Optional[str]) -> List[str]:
    """The flat line array; blank lines are kept as empty entries."""
    if text is None:
        return []
    return text.split("\n")


def serialize_row(timestamp: str, speaker: str, content: str) -> str:
    return f"[{timestamp}] [{speaker or ''}] {content}".strip()


def serialize_rows(rows: List[TranscriptRow]) -> str:
    return "\n".join(serialize_row(r.timestamp, r.speaker, r.content) for r in rows)


def update_row(
    rows: List[TranscriptRow],
    lines: List[str],
    index: int,
    speaker: Optional[str],
    content: str,
    line_index: Optional[int] = None,
) -> Tuple[List[TranscriptRow], List[str], str]:
    """
    Replaces the speaker and content of one row.

    `line_index` is the position of the row's source line in `lines` and
    defaults to `index`; it differs once `lines` keeps blank entries.
    The timestamp of the row is kept. New lists are returned; every other
    entry is the same object as in the inputs.
    """
    if line_index is None:
        line_index = index
    if index < 0 or index >= len(rows):
        raise IndexError(f"Transcript row {index} out of range")
    if line_index < 0 or line_index >= len(lines):
        raise IndexError(f"Transcript line {line_index} out of range")

    timestamp = rows[index].timestamp
    speaker = speaker or ""

    new_rows = list(rows)
    new_rows[index] = TranscriptRow(timestamp=timestamp, speaker=speaker, content=content)

    new_lines = list(lines)
    new_lines[line_index] = serialize_row(timestamp, speaker, content)

    return new_rows, new_lines, "\n".join(new_lines)


def distinct_speakers(rows: List[TranscriptRow]) -> Set[str]:
    return {row.speaker for row in rows if row.speaker}


def timestamp_to_seconds(timestamp: str) -> int:
    hours, minutes, seconds = (int(part) for part in timestamp.split(":"))
    return hours * 3600 + minutes * 60 + seconds


def seconds_to_timestamp(seconds: float) -> str:
    total = max(0, int(seconds))
    hours, remainder = divmod(total, 3600)
    minutes, secs = divmod(remainder, 60)
    return f"{hours:02d}:{minutes:02d}:{secs:02d}"


def resolve_segment_window(
    rows: List[TranscriptRow],
    index: int,
    total_duration: Optional[float],
) -> Tuple[int, Optional[float]]:
    """
    Audio window (in seconds) covered by one row.

    The window ends at the next row that carried its own timestamp, or at
    `total_duration` for the last one. An unknown duration leaves the end
    unbounded (None).
    """
    if index < 0 or index >= len(rows):
        raise IndexError(f"Transcript row {index} out of range")

    start = timestamp_to_seconds(rows[index].timestamp)
    for row in rows[index + 1:]:
        if row.timed:
            return start, timestamp_to_seconds(row.timestamp)
    return start, total_duration
