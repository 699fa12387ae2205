"""
API integration tests for the FastAPI app.

Tests the main endpoints and the typewriter router using FastAPI TestClient.
"""

import json
from types import SimpleNamespace

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from typewriter.api.typewriter import FrameQueue, format_event, stream_frames
from typewriter.api.typewriter import router as typewriter_router
from typewriter.config import settings
from typewriter.engine import TypewriterEngine, VirtualScheduler
from typewriter.main import app
from typewriter.schemas import TypewriterFrame, TypewriterMode


@pytest.fixture
def client():
    # Entering the context runs startup/shutdown, which owns the engine
    with TestClient(app) as test_client:
        yield test_client


def frame(text: str = "Hi", index: int = 0) -> TypewriterFrame:
    return TypewriterFrame(
        text=text,
        mode=TypewriterMode.TYPING,
        phrase_index=index,
        phrase="Hi",
        running=True,
    )


class TestRootEndpoints:
    """Test basic root endpoints"""

    def test_root_endpoint(self, client):
        response = client.get("/")
        assert response.status_code == 200
        data = response.json()
        assert data["message"] == "Typewriter Service"
        assert "version" in data
        assert data["status"] == "running"

    def test_health_endpoint(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"


class TestTypewriterAPI:
    """Test typewriter API endpoints"""

    def test_get_frame(self, client):
        response = client.get("/typewriter/")
        assert response.status_code == 200
        data = response.json()
        assert data["running"] is True
        assert data["mode"] in {"typing", "pausing", "deleting"}
        assert data["phrase"].startswith(data["text"])
        assert data["phrase"] == settings.phrases[data["phrase_index"]]

    def test_get_options(self, client):
        response = client.get("/typewriter/options")
        assert response.status_code == 200
        data = response.json()
        assert data["phrases"] == settings.phrases
        assert data["typing_interval_ms"] == settings.typing_interval_ms
        assert data["pause_duration_ms"] == settings.pause_duration_ms

    def test_stream_frames(self, client):
        response = client.get("/typewriter/stream", params={"limit": 2})
        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/event-stream")

        events = [
            json.loads(line[len("data: "):])
            for line in response.text.splitlines()
            if line.startswith("data: ")
        ]
        assert len(events) == 2
        for event in events:
            assert event["phrase"].startswith(event["text"])

    def test_stream_rejects_invalid_limit(self, client):
        response = client.get("/typewriter/stream", params={"limit": 0})
        assert response.status_code == 422

    def test_engine_stopped_after_shutdown(self):
        with TestClient(app):
            engine = app.state.typewriter
            assert engine.running is True
        assert engine.running is False
        assert engine.has_pending is False

    def test_missing_engine_returns_503(self):
        bare = FastAPI()
        bare.include_router(typewriter_router, prefix="/typewriter")
        response = TestClient(bare).get("/typewriter/")
        assert response.status_code == 503


class TestStreamHelpers:
    """Test SSE helpers"""

    def test_format_event(self):
        event = format_event(frame("H"))
        assert event.startswith("data: ")
        assert event.endswith("\n\n")
        assert json.loads(event[len("data: "):])["text"] == "H"

    @pytest.mark.asyncio
    async def test_frame_queue_drops_oldest(self):
        frames = FrameQueue(maxsize=2)
        frames.push(frame("a"))
        frames.push(frame("b"))
        frames.push(frame("c"))

        assert frames.dropped == 1
        assert (await frames.get()).text == "b"
        assert (await frames.get()).text == "c"


class TestStreamSubscription:
    """Test that stream listeners are tied to the response body"""

    @staticmethod
    def make_request(engine: TypewriterEngine):
        return SimpleNamespace(app=SimpleNamespace(state=SimpleNamespace(typewriter=engine)))

    @pytest.mark.asyncio
    async def test_unread_body_does_not_subscribe(self):
        engine = TypewriterEngine(["Hi"], 10, 5, 20, scheduler=VirtualScheduler())
        engine.start()

        response = await stream_frames(self.make_request(engine), limit=None)
        assert engine._listeners == []

        # Closing a body that was never iterated leaves nothing behind
        await response.body_iterator.aclose()
        assert engine._listeners == []

    @pytest.mark.asyncio
    async def test_closing_body_unsubscribes(self):
        engine = TypewriterEngine(["Hi"], 10, 5, 20, scheduler=VirtualScheduler())
        engine.start()

        response = await stream_frames(self.make_request(engine), limit=None)
        body = response.body_iterator
        first = await body.__anext__()
        assert json.loads(first[len("data: "):])["text"] == ""
        assert len(engine._listeners) == 1

        await body.aclose()
        assert engine._listeners == []

    @pytest.mark.asyncio
    async def test_limit_reached_unsubscribes(self):
        engine = TypewriterEngine(["Hi"], 10, 5, 20, scheduler=VirtualScheduler())
        engine.start()

        response = await stream_frames(self.make_request(engine), limit=1)
        chunks = [chunk async for chunk in response.body_iterator]

        assert len(chunks) == 1
        assert engine._listeners == []
