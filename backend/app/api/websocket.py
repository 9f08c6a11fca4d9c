"""
Live publish progress over WebSocket.

The client receives a snapshot of the job first, then every progress
message until the job is done or failed.
"""

import asyncio
import logging

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from app.models.schemas import ProgressMessage, PublishJob, PublishStage
from app.services.job_manager import get_job_manager

logger = logging.getLogger(__name__)
router = APIRouter(tags=["websocket"])

TERMINAL_STAGES = (PublishStage.DONE.value, PublishStage.FAILED.value)
HEARTBEAT_SECONDS = 30.0


def job_snapshot(job: PublishJob) -> dict:
    """Current job state as a progress message payload."""
    return ProgressMessage(
        stage=job.stage,
        progress=job.progress,
        message=job.message or "Connected",
        timestamp=job.completed_at or job.created_at,
        result=job.result,
        error=job.error,
        reset_after_seconds=job.reset_after_seconds,
    ).model_dump(mode="json", exclude_none=True)


async def _stream(websocket: WebSocket, queue: asyncio.Queue) -> None:
    """Forward queued messages until a terminal stage; heartbeat when idle."""
    while True:
        try:
            payload = await asyncio.wait_for(queue.get(), timeout=HEARTBEAT_SECONDS)
        except asyncio.TimeoutError:
            await websocket.send_json({"type": "heartbeat"})
            continue

        await websocket.send_json(payload)
        if payload.get("stage") in TERMINAL_STAGES:
            return


@router.websocket("/ws/{job_id}")
async def publish_progress_websocket(websocket: WebSocket, job_id: str) -> None:
    """
    Stream progress of one publish job.

    Messages are JSON objects with stage, progress, message and timestamp;
    the final one carries result or error. Unknown jobs are refused with
    close code 4004.

    Example client (Python):
        async with websockets.connect(f"ws://localhost:8801/ws/{job_id}") as ws:
            async for raw in ws:
                update = json.loads(raw)
                print(update["stage"], update["progress"], update["message"])
    """
    manager = get_job_manager()
    job = manager.get_job(job_id)
    if job is None:
        await websocket.close(code=4004, reason=f"Job not found: {job_id}")
        return

    await websocket.accept()
    # Subscribe before the snapshot so no update falls in between
    queue = manager.subscribe(job_id)
    logger.info(f"Progress stream opened for job {job_id}")

    try:
        snapshot = job_snapshot(job)
        await websocket.send_json(snapshot)
        if snapshot["stage"] in TERMINAL_STAGES:
            await websocket.close()
        else:
            await _stream(websocket, queue)
    except WebSocketDisconnect:
        logger.info(f"Client left progress stream for job {job_id}")
    except Exception as e:
        logger.error(f"Progress stream error for job {job_id}: {e}")
    finally:
        manager.unsubscribe(job_id, queue)
        logger.debug(f"Progress stream closed for job {job_id}")
