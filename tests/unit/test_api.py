"""Unit tests for the HTTP API routes."""

import json

import pytest
from fastapi.testclient import TestClient

import api.dependencies as dependencies
from api.routers.analysis import progress_event_stream
from api.server import app
from models.analysis import KeywordSet, ProgressEvent, ProgressStep, SearchAnalysis, SubjectAnalysis
from services.errors import AcquisitionError, InvalidRequestError
from services.progress_broadcaster import ProgressBroadcaster


class StubAnalysisService:
    """Records calls and returns canned flow responses."""

    def __init__(self, error: Exception | None = None):
        self.error = error
        self.calls: list[tuple] = []

    async def analyze_search(self, keywords=None, category=None, max_results=50, channel_whitelist=()):
        self.calls.append(("search", keywords, category, max_results, list(channel_whitelist)))
        if self.error is not None:
            raise self.error
        return SearchAnalysis(message="No videos found", videos=0)

    async def analyze_subject(self, subject_name, channel_whitelist=()):
        self.calls.append(("subject", subject_name, list(channel_whitelist)))
        if self.error is not None:
            raise self.error
        return SubjectAnalysis(
            message="No videos found",
            subject_name=subject_name,
            keywords=KeywordSet(main_keyword=f"{subject_name} cheat"),
            total_videos_analyzed=0,
        )


@pytest.fixture
def stub_service(monkeypatch, sample_config):
    service = StubAnalysisService()
    monkeypatch.setattr(dependencies, "_config", sample_config)
    monkeypatch.setattr(dependencies, "_analysis_service", service)
    return service


@pytest.fixture
def client(stub_service) -> TestClient:
    return TestClient(app)


class TestCoreRoutes:
    """Tests for root, health and categories."""

    @pytest.mark.unit
    def test_root(self, client):
        response = client.get("/")

        assert response.status_code == 200
        assert response.json() == {"message": "Infringement Finder API", "version": "1.0.0"}

    @pytest.mark.unit
    def test_health(self, client):
        data = client.get("/api/health").json()

        assert data["status"] == "ok"
        assert data["services"]["keywords"] == "fallback"
        assert data["services"]["ai"] == "gemini-2.5-flash"
        assert data["timestamp"]

    @pytest.mark.unit
    def test_categories(self, client):
        data = client.get("/api/categories").json()

        assert [c["value"] for c in data["categories"]] == ["default", "music", "gaming", "movies"]


class TestAnalyzeRoutes:
    """Tests for the analysis endpoints."""

    @pytest.mark.unit
    def test_analyze_passes_request_fields(self, client, stub_service):
        response = client.post(
            "/api/analyze",
            json={"keywords": "cs2 cheat", "maxResults": 20, "channelWhitelist": ["Valve"]},
        )

        assert response.status_code == 200
        assert stub_service.calls == [("search", "cs2 cheat", None, 20, ["Valve"])]
        body = response.json()
        assert body["videos"] == 0
        assert body["report"]["summary"]["totalAnalyzed"] == 0

    @pytest.mark.unit
    def test_analyze_invalid_request_is_400(self, client, stub_service):
        stub_service.error = InvalidRequestError("Either keywords or category is required")

        response = client.post("/api/analyze", json={})

        assert response.status_code == 400
        assert "keywords" in response.json()["detail"]

    @pytest.mark.unit
    def test_analyze_out_of_range_max_results_is_400(self, client):
        response = client.post("/api/analyze", json={"keywords": "x", "maxResults": 0})

        assert response.status_code == 400

    @pytest.mark.unit
    def test_analyze_acquisition_failure_is_502(self, client, stub_service):
        stub_service.error = AcquisitionError("x", {"piped": "down", "ytdlp": "down"})

        response = client.post("/api/analyze", json={"keywords": "x"})

        assert response.status_code == 502

    @pytest.mark.unit
    @pytest.mark.parametrize("field", ["subjectName", "gameName"])
    def test_analyze_subject_accepts_aliases(self, client, stub_service, field):
        response = client.post("/api/analyze-subject", json={field: "Valorant"})

        assert response.status_code == 200
        assert response.json()["keywords"]["mainKeyword"] == "Valorant cheat"
        assert stub_service.calls[-1] == ("subject", "Valorant", [])

    @pytest.mark.unit
    def test_analyze_subject_missing_name_is_400(self, client, stub_service):
        response = client.post("/api/analyze-subject", json={"channelWhitelist": []})

        assert response.status_code == 400
        assert stub_service.calls == []

    @pytest.mark.unit
    def test_analyze_subject_blank_name_is_400(self, client, stub_service):
        stub_service.error = InvalidRequestError("Subject name is required")

        response = client.post("/api/analyze-subject", json={"subjectName": "  "})

        assert response.status_code == 400

    @pytest.mark.unit
    def test_analyze_subject_acquisition_failure_is_502(self, client, stub_service):
        stub_service.error = AcquisitionError("Valorant", {"Valorant cheat": "All video sources failed"})

        response = client.post("/api/analyze-subject", json={"subjectName": "Valorant"})

        assert response.status_code == 502
        assert "Valorant" in response.json()["detail"]


class TestProgressStreams:
    """Tests for the SSE and WebSocket progress streams."""

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_sse_frames(self):
        broadcaster = ProgressBroadcaster()
        subscription = broadcaster.subscribe()
        stream = progress_event_stream(subscription, keepalive_seconds=0.01)

        broadcaster.publish(ProgressEvent(step=ProgressStep.SEARCH_COMPLETE, message="Found 3 videos", progress=10))
        frame = await stream.__anext__()

        assert frame.startswith("data: ")
        assert frame.endswith("\n\n")
        assert json.loads(frame[len("data: ") :]) == {
            "step": "search_complete",
            "message": "Found 3 videos",
            "progress": 10,
        }

        assert await stream.__anext__() == ": keep-alive\n\n"

        await stream.aclose()
        assert broadcaster.subscriber_count == 0

    @pytest.mark.unit
    def test_websocket_ping_pong(self, client, monkeypatch):
        monkeypatch.setattr(dependencies, "_broadcaster", ProgressBroadcaster())

        with client.websocket_connect("/ws/analyze/progress") as websocket:
            websocket.send_text("ping")
            assert websocket.receive_text() == "pong"

    @pytest.mark.unit
    def test_websocket_unsubscribes_on_disconnect(self, client, monkeypatch):
        broadcaster = ProgressBroadcaster()
        monkeypatch.setattr(dependencies, "_broadcaster", broadcaster)

        with client.websocket_connect("/ws/analyze/progress") as websocket:
            websocket.send_text("ping")
            assert websocket.receive_text() == "pong"
            assert broadcaster.subscriber_count == 1

        assert broadcaster.subscriber_count == 0
