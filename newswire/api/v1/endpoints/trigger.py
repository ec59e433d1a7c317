import structlog
from fastapi import APIRouter, Depends, status

from ...dependencies import get_scheduler, verify_trigger_secret
from ....news.schemas.responses import TriggerResponse
from ....news.services.scheduler import IngestionScheduler

logger = structlog.get_logger(__name__)

router = APIRouter()


@router.get(
    "/trigger-fetch",
    response_model=TriggerResponse,
    status_code=status.HTTP_202_ACCEPTED,
    dependencies=[Depends(verify_trigger_secret)],
)
async def trigger_fetch(scheduler: IngestionScheduler = Depends(get_scheduler)):
    """Start a news ingestion run in the background without waiting for it"""
    if scheduler.trigger():
        logger.info("ingestion_triggered_manually")
        return TriggerResponse(status="accepted", message="News fetch started")

    return TriggerResponse(status="already_running", message="A news fetch is already in progress")
