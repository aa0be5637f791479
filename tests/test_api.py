"""HTTP surface: status codes and {error, details} bodies (TestClient, fakes only)."""
import json

import pytest
from fastapi.testclient import TestClient

import api.playlist
import api.transcript
import api.video
import server
from core.fallback import ProviderError
from core.resolver import MediaItem, resolve
from core.transcript import NO_TRANSCRIPT_MESSAGE, Transcript, TranscriptSegment, TranscriptUnavailable


@pytest.fixture
def client():
    return TestClient(server.app)


def _item(video_id):
    return MediaItem(id=f"vid-{video_id}", title=video_id, description="d",
                     video_url=f"https://www.youtube.com/watch?v={video_id}", thumbnail="t",
                     video_id=video_id)


# --- health ---

def test_root_is_plain_text(client):
    response = client.get("/")
    assert response.status_code == 200
    assert response.text == "StudySync AI Backend is Running"


def test_status_and_echo(client):
    status = client.get("/api/test").json()
    assert status["status"] == "success"
    assert "timestamp" in status and "environment" in status

    echo = client.post("/api/test", json={"url": "https://youtu.be/abc1234567"}).json()
    assert echo["receivedUrl"] == "https://youtu.be/abc1234567"


def test_cors_headers(client):
    response = client.get("/api/test", headers={"Origin": "http://localhost:5173"})
    assert "access-control-allow-origin" in response.headers


# --- transcript ---

def test_transcript_requires_url(client):
    response = client.post("/api/transcript", json={})
    assert response.status_code == 400
    assert response.json() == {"error": "URL is required", "details": "URL is required"}


def test_transcript_rejects_non_video_url(client):
    response = client.post("/api/transcript", json={"url": "https://example.com/page"})
    assert response.status_code == 400
    assert response.json()["error"] == "Invalid YouTube URL"


def test_transcript_success(client, monkeypatch):
    transcript = Transcript(video_id="abc1234567", source="yt_dlp",
                            segments=[TranscriptSegment(text="hello", offset=0, duration=900)])
    monkeypatch.setattr(api.transcript, "fetch_transcript", lambda url: transcript)

    body = client.post("/api/transcript", json={"url": "https://youtu.be/abc1234567"}).json()

    assert body["transcript"] == "hello"
    assert body["items"] == [{"text": "hello", "offset": 0, "duration": 900}]


def test_transcript_unavailable_is_500_with_details(client, monkeypatch):
    def unavailable(url):
        raise TranscriptUnavailable(NO_TRANSCRIPT_MESSAGE)

    monkeypatch.setattr(api.transcript, "fetch_transcript", unavailable)

    response = client.post("/api/transcript", json={"url": "https://youtu.be/abc1234567"})

    assert response.status_code == 500
    assert response.json() == {"error": "Failed to fetch transcript", "details": NO_TRANSCRIPT_MESSAGE}


# --- video ---

def test_video_resolves_through_providers(client, monkeypatch, stub_provider):
    providers = [
        stub_provider("youtube_data_api", video=ProviderError("quota")),
        stub_provider("yt_dlp", video=_item("abc1234567")),
    ]
    monkeypatch.setattr(api.video, "resolve", lambda raw: resolve(raw, providers=providers))

    response = client.post("/api/video", json={"url": "https://youtu.be/abc1234567"})

    assert response.status_code == 200
    body = response.json()
    assert body["type"] == "video"
    assert body["videoId"] == "abc1234567"
    assert body["items"][0]["videoUrl"] == "https://www.youtube.com/watch?v=abc1234567"


def test_video_search_query(client, monkeypatch, stub_provider):
    providers = [stub_provider("yt_dlp", search=[_item("abc1234567"), _item("def1234567")])]
    monkeypatch.setattr(api.video, "resolve", lambda raw: resolve(raw, providers=providers))

    body = client.post("/api/video", json={"url": "newton laws"}).json()

    assert body["type"] == "search"
    assert body["query"] == "newton laws"
    assert len(body["items"]) == 2


def test_video_invalid_url_echoes_input(client):
    response = client.post("/api/video", json={"url": "https://example.com/nothing"})
    assert response.status_code == 400
    assert response.json()["providedUrl"] == "https://example.com/nothing"


def test_video_all_providers_failing(client, monkeypatch, stub_provider):
    providers = [stub_provider("yt_dlp", playlist=ProviderError("blocked"))]
    monkeypatch.setattr(api.video, "resolve", lambda raw: resolve(raw, providers=providers))

    response = client.post("/api/video", json={"url": "https://youtube.com/playlist?list=PL1"})

    assert response.status_code == 500
    assert response.json() == {"error": "Failed to fetch video/playlist",
                               "details": "Failed to fetch playlist via all methods"}


def test_video_failure_passes_provider_message_through(client, monkeypatch, stub_provider):
    providers = [
        stub_provider("youtube_data_api", video=ProviderError("quota exceeded")),
        stub_provider("yt_dlp", video=ProviderError("Video unavailable: private video")),
    ]
    monkeypatch.setattr(api.video, "resolve", lambda raw: resolve(raw, providers=providers))

    response = client.post("/api/video", json={"url": "https://youtu.be/abc1234567"})

    assert response.status_code == 500
    assert response.json() == {
        "error": "Failed to fetch video/playlist",
        "details": "Failed to fetch video via all methods: Video unavailable: private video",
    }


def test_generate_test_series_non_list_questions_is_json_500(client, fake_llm):
    fake_llm(json.dumps({"questions": 5}))

    response = client.post("/api/generate-test-series", json={"topic": "Optics", "questionCount": 10})

    assert response.status_code == 500
    assert response.json() == {"error": "Failed to generate test series",
                               "details": "No valid questions generated"}


# --- playlist ---

def test_playlist_requires_list_id(client):
    response = client.post("/api/playlist", json={"url": "https://youtu.be/abc1234567"})
    assert response.status_code == 400
    assert response.json()["error"] == "Invalid Playlist URL"


def test_playlist_items(client, monkeypatch):
    snippet = {"snippet": {"title": "One", "resourceId": {"videoId": "abc1234567"}}}
    monkeypatch.setattr(api.playlist, "fetch_playlist_snippets", lambda url: [snippet])

    body = client.post("/api/playlist", json={"url": "https://youtube.com/playlist?list=PL1"}).json()
    assert body == {"items": [snippet]}


# --- pdf processing ---

def test_pdf_process_chunks_then_consolidates(client, fake_llm):
    llm = fake_llm("chunk 1", "chunk 2", "chunk 3", "final summary")

    response = client.post("/api/pdf-process", json={
        "pdfContent": "x" * 5000,
        "taskType": "key-points",
        "chunkSize": 2000,
    })

    assert response.status_code == 200
    assert response.json() == {"result": "final summary", "chunksProcessed": 3}
    assert len(llm.calls) == 4


def test_pdf_process_single_chunk_skips_consolidation(client, fake_llm):
    llm = fake_llm("short summary")

    body = client.post("/api/pdf-process", json={"pdfContent": "brief notes"}).json()

    assert body == {"result": "short summary", "chunksProcessed": 1}
    assert len(llm.calls) == 1


@pytest.mark.parametrize("payload,error", [
    ({}, "PDF content is required"),
    ({"pdfContent": "   "}, "PDF content is required"),
    ({"pdfContent": "text", "taskType": "poem"}, "Invalid task type"),
    ({"pdfContent": "text", "chunkSize": 0}, "Invalid chunk size"),
    ({"pdfContent": "text", "chunkSize": -5}, "Invalid chunk size"),
])
def test_pdf_process_validation(client, payload, error):
    response = client.post("/api/pdf-process", json=payload)
    assert response.status_code == 400
    assert response.json()["error"] == error


def test_pdf_process_llm_failure(client, fake_llm):
    fake_llm("")

    response = client.post("/api/pdf-process", json={"pdfContent": "some text"})

    assert response.status_code == 500
    assert response.json() == {"error": "Failed to process PDF",
                               "details": "LLM returned an empty response"}


# --- test series ---

def test_generate_test_series(client, fake_llm):
    question = {"question": "Q?", "options": ["a", "b", "c", "d"], "correctAnswer": 2,
                "explanation": "e", "difficulty": "easy", "subtopic": "s"}
    fake_llm(json.dumps({"questions": [question] * 10}))

    response = client.post("/api/generate-test-series", json={
        "topic": "Thermodynamics",
        "questionCount": 10,
        "difficulty": "easy",
    })

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert len(body["questions"]) == 10
    assert body["metadata"]["topic"] == "Thermodynamics"


@pytest.mark.parametrize("payload,error", [
    ({"questionCount": 10}, "Topic and question count are required"),
    ({"topic": "Optics", "questionCount": 5}, "Question count must be between 10 and 100"),
    ({"topic": "Optics", "questionCount": 10, "difficulty": "extreme"}, "Invalid difficulty level"),
])
def test_generate_test_series_validation(client, payload, error):
    response = client.post("/api/generate-test-series", json=payload)
    assert response.status_code == 400
    assert response.json()["error"] == error


def test_generate_test_series_without_api_key(client, monkeypatch):
    import core.llm
    monkeypatch.setattr(core.llm.config.llm, "groq_api_key", None)

    response = client.post("/api/generate-test-series", json={"topic": "Optics", "questionCount": 10})

    assert response.status_code == 500
    assert response.json()["error"] == "API key not configured"
