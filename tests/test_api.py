import asyncio
import json

import httpx
import pytest

from minutes.core.config import settings

from conftest import ollama_reply

TAGGED = "[00:00:10] [Amy] Welcome, everyone.\n[00:00:40] [Bob] Budget first.\n\n[00:01:20] [Amy] Agreed."


def upload(client, title="Weekly sync", language="en", content_type="audio/wav"):
    return client.post(
        "/api/upload",
        files={"audio": ("weekly.wav", b"RIFF0000WAVEfmt data", content_type)},
        data={"title": title, "language": language},
    )


@pytest.fixture
def meeting_id(client):
    response = upload(client)
    assert response.status_code == 200
    return response.json()["meetingId"]


@pytest.fixture
def tagged_meeting(client, meeting_id):
    response = client.post(
        f"/api/meeting/{meeting_id}/transcription-with-speaker/update",
        json={"transcription_with_speaker": TAGGED},
    )
    assert response.status_code == 200
    return meeting_id


class TestSystem:
    def test_health(self, client):
        response = client.get("/api/health", headers={"X-Request-ID": "req-123"})
        assert response.status_code == 200
        assert response.json()["status"] == "OK"
        assert response.headers["X-Request-ID"] == "req-123"

    def test_status(self, client):
        data = client.get("/api/system/status").json()
        assert set(data["components"]) == {"transcriber", "llm"}
        assert data["overall_status"] == "initializing"

    def test_startup_check_reports_ready(self, client, upstream):
        from minutes.main import check_upstreams

        upstream.handler = lambda request: httpx.Response(200, json={"models": []})

        assert asyncio.run(check_upstreams(transport=upstream.transport)) is True
        assert sorted(r.url.path for r in upstream.requests) == ["/", "/api/tags"]
        assert client.get("/api/system/status").json()["overall_status"] == "ready"

    def test_startup_check_reports_degraded(self, client, upstream):
        from minutes.main import check_upstreams

        client.post("/api/settings", json={"ai_provider": "openai"})
        upstream.handler = lambda request: httpx.Response(200, text="ok")

        assert asyncio.run(check_upstreams(transport=upstream.transport)) is False
        data = client.get("/api/system/status").json()
        assert data["overall_status"] == "degraded"
        assert data["components"]["transcriber"]["status"] == "ready"
        assert data["components"]["llm"]["status"] == "unavailable"


class TestMeetings:
    def test_upload_and_fetch(self, client):
        body = upload(client).json()
        assert body["title"] == "Weekly sync"
        assert body["audioPath"].endswith(".wav")

        meeting = client.get(f"/api/meeting/{body['meetingId']}").json()
        assert meeting["language"] == "en"
        assert meeting["transcription_with_speaker"] == ""
        assert meeting["audio_url"].startswith("/uploads/")

        audio = client.get(meeting["audio_url"])
        assert audio.status_code == 200
        assert audio.content == b"RIFF0000WAVEfmt data"

        listed = client.get("/api/meetings").json()
        assert [m["id"] for m in listed] == [body["meetingId"]]
        assert client.get(f"/api/meetings/{body['meetingId']}").json()["title"] == "Weekly sync"

    def test_upload_default_title(self, client):
        assert upload(client, title="").json()["title"].startswith("Meeting ")

    def test_upload_rejects_non_audio(self, client):
        response = upload(client, content_type="application/pdf")
        assert response.status_code == 400

    def test_upload_rejects_unknown_language(self, client):
        assert upload(client, language="fr").status_code == 400

    def test_upload_size_limit(self, client, monkeypatch):
        monkeypatch.setattr(settings, "MAX_FILE_SIZE_MB", 0)
        response = upload(client)
        assert response.status_code == 413
        assert client.get("/api/meetings").json() == []

    def test_update_language_and_title(self, client, meeting_id):
        response = client.patch(f"/api/meeting/{meeting_id}", json={"language": "yue", "title": "董事會"})
        assert response.status_code == 200
        assert response.json()["language"] == "yue"
        assert response.json()["title"] == "董事會"

        assert client.patch(f"/api/meeting/{meeting_id}", json={"language": ""}).json()["language"] == ""

    @pytest.mark.parametrize("payload", [{"language": "fr"}, {"title": ""}, {}])
    def test_update_rejects_invalid(self, client, meeting_id, payload):
        assert client.patch(f"/api/meeting/{meeting_id}", json=payload).status_code == 400

    def test_overview_hides_transcripts(self, client, tagged_meeting):
        data = client.get(f"/api/meeting/{tagged_meeting}/all").json()
        assert data["summary"] == ""
        assert data["meeting"]["id"] == tagged_meeting
        assert "transcription_with_speaker" not in data["meeting"]
        assert "audio_file_path" not in data["meeting"]

    def test_delete(self, client, meeting_id):
        audio_url = client.get(f"/api/meeting/{meeting_id}").json()["audio_url"]

        assert client.delete(f"/api/meeting/{meeting_id}").status_code == 200
        assert client.get(f"/api/meeting/{meeting_id}").status_code == 404
        assert client.get(audio_url).status_code == 404
        assert client.delete(f"/api/meeting/{meeting_id}").status_code == 404

    @pytest.mark.parametrize("method, path", [
        ("get", "/api/meeting/missing"),
        ("get", "/api/meeting/missing/transcript/rows"),
        ("get", "/api/meeting/missing/export"),
        ("post", "/api/meeting/missing/transcription"),
        ("get", "/api/meeting/missing/summary"),
    ])
    def test_missing_meeting(self, client, method, path):
        assert getattr(client, method)(path).status_code == 404


class TestTranscription:
    def test_transcribe_once(self, client, meeting_id, upstream):
        upstream.handler = lambda request: httpx.Response(
            200, json={"segments": [{"start": 0, "text": "Welcome."}, {"start": 42.5, "text": "Budget first."}]}
        )

        first = client.post(f"/api/meeting/{meeting_id}/transcription")
        assert first.status_code == 200
        assert first.json()["transcription"] == "[00:00:00] Welcome.\n[00:00:42] Budget first."

        again = client.post(f"/api/meeting/{meeting_id}/transcription")
        assert again.json()["message"] == "Transcription already exists"
        assert len(upstream.requests) == 1

        tagged = client.get(f"/api/meeting/{meeting_id}/transcription-with-speaker").json()
        assert tagged["transcription_with_speaker"] == first.json()["transcription"]

    def test_transcribe_uses_stored_settings(self, client, meeting_id, upstream):
        upstream.handler = lambda request: httpx.Response(200, json={"text": "hello"})
        client.post("/api/settings", json={"whisper_base_path": "http://gpu-box:9000", "initial_prompt": "ACME"})

        client.post(f"/api/meeting/{meeting_id}/transcription")

        request = upstream.requests[0]
        assert request.url.host == "gpu-box"
        assert request.url.params["initial_prompt"] == "ACME"

    def test_transcription_failure(self, client, meeting_id, upstream):
        upstream.handler = lambda request: httpx.Response(500, text="boom")
        assert client.post(f"/api/meeting/{meeting_id}/transcription").status_code == 502
        assert client.get(f"/api/meeting/{meeting_id}/transcription").json() == {"transcription": ""}

    def test_manual_updates(self, client, meeting_id):
        client.post(f"/api/meeting/{meeting_id}/transcription/update", json={"transcription": "raw"})
        client.post(f"/api/meeting/{meeting_id}/transcription-with-speaker", json={"transcription_with_speaker": "x"})

        meeting = client.get(f"/api/meeting/{meeting_id}").json()
        assert meeting["transcription"] == "raw"
        assert meeting["transcription_with_speaker"] == "x"

    def test_review(self, client, tagged_meeting, upstream):
        upstream.handler = lambda request: ollama_reply("<think>ok</think>[00:00:10] [Amy] Welcome everyone.")

        response = client.post(f"/api/meeting/{tagged_meeting}/transcription/review")

        assert response.status_code == 200
        assert response.json()["transcription_with_speaker"] == "[00:00:10] [Amy] Welcome everyone."
        system_message = json.loads(upstream.requests[0].content)["messages"][0]
        assert system_message["role"] == "system" and system_message["content"]

    def test_review_llm_unavailable(self, client, tagged_meeting, upstream):
        def refuse(request):
            raise httpx.ConnectError("connection refused", request=request)

        upstream.handler = refuse
        assert client.post(f"/api/meeting/{tagged_meeting}/transcription/review").status_code == 502
        assert client.get("/api/system/status").json()["components"]["llm"]["status"] == "unavailable"


class TestTranscriptRows:
    def test_rows(self, client, tagged_meeting):
        data = client.get(f"/api/meeting/{tagged_meeting}/transcript/rows").json()
        assert data["speakers"] == ["Amy", "Bob"]
        assert data["rows"][2] == {"timestamp": "00:01:20", "speaker": "Amy", "content": "Agreed."}
        assert len(data["rows"]) == 3

    def test_edit_row(self, client, tagged_meeting):
        response = client.patch(
            f"/api/meeting/{tagged_meeting}/transcript/rows/2",
            json={"speaker": "Carol", "content": "Agreed, with changes."},
        )
        assert response.status_code == 200
        body = response.json()
        assert body["row"] == {"timestamp": "00:01:20", "speaker": "Carol", "content": "Agreed, with changes."}
        assert body["line"] == "[00:01:20] [Carol] Agreed, with changes."

        stored = client.get(f"/api/meeting/{tagged_meeting}/transcription-with-speaker").json()
        assert stored["transcription_with_speaker"].split("\n") == [
            "[00:00:10] [Amy] Welcome, everyone.",
            "[00:00:40] [Bob] Budget first.",
            "",
            "[00:01:20] [Carol] Agreed, with changes.",
        ]

    def test_edit_missing_row(self, client, tagged_meeting):
        response = client.patch(f"/api/meeting/{tagged_meeting}/transcript/rows/9", json={"content": "x"})
        assert response.status_code == 404

    def test_segment_window(self, client, tagged_meeting):
        base = f"/api/meeting/{tagged_meeting}/transcript/rows"
        assert client.get(f"{base}/0/window").json() == {"index": 0, "start_seconds": 10, "end_seconds": 40}
        assert client.get(f"{base}/2/window", params={"duration": 200}).json()["end_seconds"] == 200
        # Fake upload bytes cannot be probed, so the duration is unknown
        assert client.get(f"{base}/2/window").json()["end_seconds"] is None
        assert client.get(f"{base}/3/window").status_code == 404

    def test_export(self, client, tagged_meeting):
        response = client.get(f"/api/meeting/{tagged_meeting}/export")
        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/csv")
        assert 'filename="Weekly sync.csv"' in response.headers["content-disposition"]
        assert response.text.splitlines() == [
            "Timestamp,Speaker,Content",
            '00:00:10,Amy,"Welcome, everyone."',
            "00:00:40,Bob,Budget first.",
            "00:01:20,Amy,Agreed.",
        ]


class TestSummary:
    def test_generate_and_fetch(self, client, tagged_meeting, upstream):
        upstream.handler = lambda request: ollama_reply("<think>draft</think># Minutes")
        assert client.get(f"/api/meeting/{tagged_meeting}/summary").json() == {"summary": None}

        response = client.post(f"/api/summary/{tagged_meeting}", json={"prompt": "Bullet points only."})
        assert response.status_code == 200
        assert response.json() == {"summary": "# Minutes"}
        user_message = json.loads(upstream.requests[0].content)["messages"][1]["content"]
        assert user_message.startswith("Bullet points only.\n\n")

        assert client.get(f"/api/meeting/{tagged_meeting}/summary").json() == {"summary": "# Minutes"}
        assert client.get(f"/api/meeting/{tagged_meeting}/all").json()["summary"] == "# Minutes"

    def test_summary_without_body(self, client, tagged_meeting, upstream):
        upstream.handler = lambda request: ollama_reply("Minutes")
        assert client.post(f"/api/summary/{tagged_meeting}").status_code == 200

    def test_summary_requires_transcript(self, client, meeting_id):
        assert client.post(f"/api/summary/{meeting_id}").status_code == 400

    def test_openai_key_missing(self, client, tagged_meeting):
        client.post("/api/settings", json={"ai_provider": "openai"})
        response = client.post(f"/api/summary/{tagged_meeting}")
        assert response.status_code == 400
        assert "API key" in response.json()["detail"]

    def test_provider_error(self, client, tagged_meeting, upstream):
        upstream.handler = lambda request: httpx.Response(404, json={"error": "model not found"})
        assert client.post(f"/api/summary/{tagged_meeting}").status_code == 502


class TestSettings:
    def test_round_trip(self, client):
        assert client.get("/api/settings").json() == {}
        response = client.post("/api/settings", json={"ai_provider": "lmstudio", "lmstudio_api_key": None})
        assert response.status_code == 200
        assert client.get("/api/settings").json() == {"ai_provider": "lmstudio", "lmstudio_api_key": None}
