"""Infringement analysis routes: search/subject analysis and live progress."""

import asyncio
import contextlib
import json
import logging
from typing import AsyncIterator

from api.dependencies import get_analysis_service, get_broadcaster
from api.schemas import AnalyzeRequest, AnalyzeSubjectRequest
from fastapi import APIRouter, HTTPException, WebSocket, WebSocketDisconnect
from fastapi.responses import StreamingResponse
from services.errors import AcquisitionError, InvalidRequestError
from services.progress_broadcaster import Subscription

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Analysis"])

# Seconds of silence before an SSE comment is sent to keep proxies from closing the stream
SSE_KEEPALIVE_SECONDS = 15.0


@router.post(
    "/api/analyze",
    summary="Search and analyze videos",
    description="Search by keywords (or fetch a trending category), pre-filter and classify the results.",
    responses={400: {"description": "Missing keywords and category"}, 502: {"description": "All video sources failed"}},
)
async def analyze(request: AnalyzeRequest) -> dict:
    """Run the search analysis flow.

    Args:
        request: Keywords or category, result cap and channel whitelist

    Returns:
        Analyses and summary report
    """
    service = get_analysis_service()
    try:
        result = await service.analyze_search(
            keywords=request.keywords,
            category=request.category,
            max_results=request.max_results,
            channel_whitelist=request.channel_whitelist,
        )
    except InvalidRequestError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except AcquisitionError as e:
        logger.error(f"Video acquisition failed: {e}")
        raise HTTPException(status_code=502, detail=str(e))

    return result.to_dict()


@router.post(
    "/api/analyze-subject",
    summary="Analyze a subject",
    description="Research keywords for a subject, search them concurrently and list takedown candidates.",
    responses={400: {"description": "Missing subject name"}, 502: {"description": "Every keyword search failed"}},
)
async def analyze_subject(request: AnalyzeSubjectRequest) -> dict:
    """Run the subject analysis flow.

    Args:
        request: Subject name and channel whitelist

    Returns:
        Keywords used and strikable videos
    """
    service = get_analysis_service()
    try:
        result = await service.analyze_subject(
            subject_name=request.subject_name,
            channel_whitelist=request.channel_whitelist,
        )
    except InvalidRequestError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except AcquisitionError as e:
        logger.error(f"Subject acquisition failed: {e}")
        raise HTTPException(status_code=502, detail=str(e))

    return result.to_dict()


async def progress_event_stream(
    subscription: Subscription,
    keepalive_seconds: float = SSE_KEEPALIVE_SECONDS,
) -> AsyncIterator[str]:
    """Render a subscription as Server-Sent Events frames."""
    try:
        while True:
            event = await subscription.get(timeout=keepalive_seconds)
            if event is None:
                yield ": keep-alive\n\n"
                continue
            yield f"data: {json.dumps(event.to_dict())}\n\n"
    finally:
        subscription.close()


@router.get(
    "/api/analyze/progress",
    summary="Progress stream (SSE)",
    description="Server-Sent Events stream of analysis progress for every running analysis.",
)
async def analyze_progress() -> StreamingResponse:
    """Subscribe to progress events over SSE."""
    subscription = get_broadcaster().subscribe()
    return StreamingResponse(
        progress_event_stream(subscription),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache", "Connection": "keep-alive"},
    )


@router.websocket("/ws/analyze/progress")
async def websocket_progress(websocket: WebSocket) -> None:
    """WebSocket endpoint for real-time analysis progress.

    Args:
        websocket: WebSocket connection
    """
    await websocket.accept()
    subscription = get_broadcaster().subscribe()

    async def forward_events() -> None:
        async for event in subscription:
            await websocket.send_json(event.to_dict())

    forward_task = asyncio.create_task(forward_events())

    try:
        # Keep connection alive and handle incoming messages
        while True:
            data = await websocket.receive_text()
            if data == "ping":
                await websocket.send_text("pong")
    except WebSocketDisconnect:
        pass
    except Exception as e:
        logger.error(f"WebSocket error on progress stream: {e}")
    finally:
        forward_task.cancel()
        with contextlib.suppress(asyncio.CancelledError, Exception):
            await forward_task
        subscription.close()
