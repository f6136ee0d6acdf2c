"""Storage notification intake endpoint."""

import logging
from functools import lru_cache

from fastapi import APIRouter, Depends, HTTPException, Request, status

from filedrop.core.config import settings
from filedrop.services.event_processor.dispatcher import ConsumerDispatcher
from filedrop.services.event_processor.notifications import decode_batch
from filedrop.services.event_processor.routing import load_processor_config
from filedrop.services.event_processor.service import EventProcessor
from filedrop.storage import get_object_store

logger = logging.getLogger(__name__)

router = APIRouter()


@lru_cache
def get_event_processor() -> EventProcessor:
    """Build the processor once per process from the environment settings."""
    config = load_processor_config(settings.BUCKET_CONFIG, default_bucket=settings.GCS_BUCKET_NAME)
    store = get_object_store(
        settings.STORAGE_BACKEND,
        project_id=settings.GCP_PROJECT_ID,
        base_path=settings.LOCAL_STORAGE_PATH,
    )
    dispatcher = ConsumerDispatcher(
        scheme=store.scheme,
        processor_version=settings.SERVICE_VERSION,
        timeout=settings.DISPATCH_TIMEOUT,
        auth_enabled=settings.DISPATCH_AUTH_ENABLED,
    )
    return EventProcessor(config, store, dispatcher)


@router.post("/")
async def handle_storage_events(
    request: Request,
    processor: EventProcessor = Depends(get_event_processor),
):
    """
    Process a batch of storage notifications.

    Per-record failures are reported in the response body rather than as an
    error status, so the notification source does not redeliver the whole
    batch.

    Returns:
        200: Batch processed, with one outcome per arrival
        400: Request body is not JSON
    """
    try:
        payload = await request.json()
    except ValueError as e:
        logger.warning(
            "Failed to parse notification request",
            extra={"error": str(e), "error_type": type(e).__name__},
        )
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid request: {e}",
        )

    batch = decode_batch(payload)
    outcomes = await processor.handle(batch.arrivals)

    return {
        "status": "processed",
        "received": len(batch.arrivals),
        "ignored": batch.ignored,
        "rejected": batch.rejected,
        "outcomes": [outcome.model_dump() for outcome in outcomes],
    }
