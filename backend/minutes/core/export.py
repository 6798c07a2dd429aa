"""CSV export of structured transcript rows."""
import csv
import io
import re
from typing import Iterable

from .transcript_codec import TranscriptRow

CSV_HEADER = ("Timestamp", "Speaker", "Content")

_UNSAFE_FILENAME_CHARS = re.compile(r'[\\/:*?"<>|\x00-\x1f]+')


def rows_to_csv(rows: Iterable[TranscriptRow]) -> str:
    """
    Writes one CSV record per row (timestamp, speaker, content).

    Values containing the delimiter, a quote or a line break are quoted and
    embedded quotes are doubled.
    """
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_MINIMAL)
    writer.writerow(CSV_HEADER)
    for row in rows:
        writer.writerow([row.timestamp, row.speaker, row.content])
    return buffer.getvalue()


def export_filename(title: str) -> str:
    """Download filename for a meeting title, e.g. `Weekly Sync.csv`."""
    name = _UNSAFE_FILENAME_CHARS.sub("_", (title or "").strip()).strip(" ._")
    return f"{name or 'meeting'}.csv"
