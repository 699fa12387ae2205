"""
Typewriter API endpoints.

Exposes the application's live typewriter engine: the current frame, the
options it runs with, and a server-sent event stream that re-emits every
frame so a UI can re-render on each character change.
"""

import asyncio
from typing import AsyncIterator, Optional

from fastapi import APIRouter, HTTPException, Query, Request
from fastapi.responses import StreamingResponse

from typewriter.config import settings
from typewriter.engine.typewriter import TypewriterEngine
from typewriter.schemas import TypewriterFrame, TypewriterOptions
from typewriter.utils.logger import get_logger

logger = get_logger(__name__)

router = APIRouter()


def get_engine(request: Request) -> TypewriterEngine:
    engine = getattr(request.app.state, "typewriter", None)
    if engine is None:
        raise HTTPException(status_code=503, detail="Typewriter engine not initialized")
    return engine


def format_event(frame: TypewriterFrame) -> str:
    """Encode a frame as a server-sent event"""
    return f"data: {frame.model_dump_json()}\n\n"


class FrameQueue:
    """
    Bounded per-client buffer fed by an engine listener.

    When a client falls behind, the oldest frame is dropped so the engine's
    timer callbacks never block.
    """

    def __init__(self, maxsize: int):
        self.queue: asyncio.Queue = asyncio.Queue(maxsize=maxsize)
        self.dropped = 0

    def push(self, frame: TypewriterFrame) -> None:
        if self.queue.full():
            self.queue.get_nowait()
            self.dropped += 1
        self.queue.put_nowait(frame)

    async def get(self) -> TypewriterFrame:
        return await self.queue.get()


@router.get("/", response_model=TypewriterFrame)
async def get_frame(request: Request):
    """Current display state of the typewriter"""
    return get_engine(request).snapshot()


@router.get("/options", response_model=TypewriterOptions)
async def get_options(request: Request):
    """Phrases and timings the typewriter runs with"""
    return get_engine(request).options


@router.get("/stream")
async def stream_frames(
    request: Request,
    limit: Optional[int] = Query(
        default=None, ge=1, description="Close the stream after this many frames"
    ),
):
    """Stream typewriter frames (SSE), starting with the current one"""
    engine = get_engine(request)
    frames = FrameQueue(settings.stream_queue_size)

    async def generate_frames() -> AsyncIterator[str]:
        # Subscribed here so an unstarted body never leaves a listener behind
        unsubscribe = engine.subscribe(frames.push)
        logger.info("Typewriter stream client connected")
        sent = 0
        try:
            yield format_event(engine.snapshot())
            sent += 1
            while limit is None or sent < limit:
                if await request.is_disconnected():
                    break
                try:
                    frame = await asyncio.wait_for(frames.get(), timeout=1.0)
                except asyncio.TimeoutError:
                    # Wake up periodically to notice disconnects
                    continue
                yield format_event(frame)
                sent += 1
        finally:
            unsubscribe()
            logger.info(
                f"Typewriter stream client disconnected after {sent} frames "
                f"({frames.dropped} dropped)"
            )

    return StreamingResponse(
        generate_frames(),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
        },
    )
