"""
Trigger endpoint: one POST runs one sync
"""

from fastapi import APIRouter
from fastapi.responses import JSONResponse
from fastapi.encoders import jsonable_encoder
from core.exceptions import ConfigurationError, SyncCancelledError, SyncRunFailedError
from ingestion.service import run_sync
from schemas.api import SyncErrorResponse, SyncRunResponse
import logging

logger = logging.getLogger(__name__)
router = APIRouter(tags=["Sync"])


@router.post("/sync", response_model=SyncRunResponse)
async def trigger_sync():
    """
    Run a sync over the configured channels.

    Returns:
    - 200 with the run result when at least one channel succeeded
    - 500 when every channel failed, the run was cancelled or the configuration is invalid
    """
    try:
        result = await run_sync(trigger="http")

    except ConfigurationError as e:
        logger.error(f"Sync not started: {e.message}")
        return _error_response(e)

    except (SyncRunFailedError, SyncCancelledError) as e:
        logger.error(f"Sync failed: {e.message}")
        return _error_response(e, SyncRunResponse(**e.result.to_dict()) if e.result else None)

    return SyncRunResponse(**result.to_dict())


def _error_response(error, result=None) -> JSONResponse:
    body = SyncErrorResponse(
        error_type=type(error).__name__,
        message=error.message,
        result=result
    )
    return JSONResponse(status_code=500, content=jsonable_encoder(body))
