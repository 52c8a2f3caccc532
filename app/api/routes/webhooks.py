"""
Webhook Intake Routes

Push delivery from platform adapters:
- POST /api/webhook/discord
- POST /api/webhook/telegram

Each request runs the ingestion pipeline once, inline. A retryable outcome is
handed to the platform's worker, which retries with backoff, and the sender
gets 202. If the worker cannot take it the sender gets 503 and should
redeliver later. 400 means "never retry".
"""

from fastapi import APIRouter, Body, Depends
from fastapi.responses import JSONResponse
from typing import Any, Dict
import logging

from app.api.dependencies import get_pipeline, get_workers
from app.config import get_settings
from app.models.api_responses import IngestResponse
from app.models.message import Platform
from app.services.ingestion_worker import WorkerManager
from app.services.pipeline import IngestionPipeline, IngestResult, IngestStatus

logger = logging.getLogger(__name__)
router = APIRouter()

QUEUED = "queued"

_STATUS_CODES = {
    IngestStatus.ACCEPTED: 200,
    IngestStatus.DUPLICATE: 200,
    IngestStatus.SKIPPED: 200,
    IngestStatus.REJECTED: 400,
    IngestStatus.RETRYABLE: 503,
    IngestStatus.FAILED: 500,
}


def _to_response(result: IngestResult, queued: bool = False) -> JSONResponse:
    body = IngestResponse(
        status=QUEUED if queued else result.status.value,
        message_id=result.message_id,
        sentiment=result.message.sentiment if result.message else None,
        reason=result.reason,
    )
    headers = {}
    if result.status == IngestStatus.RETRYABLE and not queued:
        headers["Retry-After"] = str(int(get_settings().retry_backoff_start_seconds) or 1)
    return JSONResponse(
        status_code=202 if queued else _STATUS_CODES[result.status],
        content=body.model_dump(mode="json", by_alias=True),
        headers=headers,
    )


async def _ingest(
    platform: Platform,
    payload: Dict[str, Any],
    pipeline: IngestionPipeline,
    workers: WorkerManager,
) -> JSONResponse:
    result = await pipeline.ingest(platform, payload)
    if not result.is_retryable:
        return _to_response(result)

    queued = workers.get(platform).retry_later(
        payload, attempt=1, reason=result.reason, message_id=result.message_id
    )
    if queued:
        logger.info(f"Handed {result.message_id} to the {platform.value} worker for retry")
    return _to_response(result, queued=queued)


@router.post("/webhook/discord", response_model=IngestResponse)
async def discord_webhook(
    payload: Dict[str, Any] = Body(..., description="Raw Discord message"),
    pipeline: IngestionPipeline = Depends(get_pipeline),
    workers: WorkerManager = Depends(get_workers),
):
    """
    Ingest a Discord message pushed by the gateway relay.

    Example body:
    {"message_id": "1122", "channel_id": "C1",
     "author": {"id": "U1", "username": "ana"},
     "content": "great release", "timestamp": "2026-10-18T09:30:00Z"}
    """
    return await _ingest(Platform.DISCORD, payload, pipeline, workers)


@router.post("/webhook/telegram", response_model=IngestResponse)
async def telegram_webhook(
    payload: Dict[str, Any] = Body(..., description="Telegram Update or Message"),
    pipeline: IngestionPipeline = Depends(get_pipeline),
    workers: WorkerManager = Depends(get_workers),
):
    """Ingest a Telegram Bot API update (webhook mode)."""
    return await _ingest(Platform.TELEGRAM, payload, pipeline, workers)
