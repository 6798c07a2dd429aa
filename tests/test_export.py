import csv
import io

import pytest

from minutes.core.export import CSV_HEADER, export_filename, rows_to_csv
from minutes.core.transcript_codec import TranscriptRow, parse_transcript


def test_header_only_for_empty_transcript():
    assert rows_to_csv([]) == "Timestamp,Speaker,Content\r\n"


def test_one_record_per_row():
    rows = parse_transcript("[00:00:01] [Amy] hello\n\n[00:00:05] [Bob] bye")
    body = rows_to_csv(rows)
    assert body.splitlines() == [
        "Timestamp,Speaker,Content",
        "00:00:01,Amy,hello",
        "00:00:05,Bob,bye",
    ]


def test_quoting():
    rows = [TranscriptRow("00:00:01", "Amy", 'she said "hi", then left')]
    assert rows_to_csv(rows).splitlines()[1] == '00:00:01,Amy,"she said ""hi"", then left"'


def test_values_survive_csv_reader():
    rows = [
        TranscriptRow("00:00:01", "Amy, PM", "line one\nline two"),
        TranscriptRow("00:00:02", "", '"quoted"'),
    ]
    records = list(csv.reader(io.StringIO(rows_to_csv(rows), newline="")))
    assert records[0] == list(CSV_HEADER)
    assert records[1:] == [[r.timestamp, r.speaker, r.content] for r in rows]


@pytest.mark.parametrize("title, expected", [
    ("Weekly Sync", "Weekly Sync.csv"),
    ("Q3: plan/review?", "Q3_ plan_review.csv"),
    ("董事會 2024", "董事會 2024.csv"),
    ("", "meeting.csv"),
    (" ... ", "meeting.csv"),
    (None, "meeting.csv"),
])
def test_export_filename(title, expected):
    assert export_filename(title) == expected
