"""
Liveness and build information endpoints
"""

from fastapi import APIRouter, Response
from schemas.api import InfoResponse
from core.config import settings
import platform

router = APIRouter(tags=["Health"])

VERSION = "1.0.0"


@router.get("/healthz")
async def healthz():
    """Liveness probe"""
    return Response(status_code=200)


@router.get("/info", response_model=InfoResponse)
async def info():
    """Build and runtime information"""
    return InfoResponse(
        version=VERSION,
        environment=settings.ENVIRONMENT,
        python_version=platform.python_version(),
        platform=f"{platform.system().lower()}/{platform.machine()}"
    )
