"""
Health Check Routes

FastAPI endpoint for service liveness.
"""

import logging
from datetime import UTC, datetime

from fastapi import APIRouter, Depends, status

from chatapp import __version__
from chatapp.api.deps import get_context
from chatapp.context import AppContext
from chatapp.models.api import HealthResponse

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/health", response_model=HealthResponse, status_code=status.HTTP_200_OK)
async def health(context: AppContext = Depends(get_context)) -> HealthResponse:
    """
    Basic liveness check.

    Returns 200 OK if the service is running. Reports whether a completion
    API key is configured so the UI can warn before the first send.
    """
    return HealthResponse(
        status="healthy",
        version=__version__,
        timestamp=datetime.now(UTC).isoformat(),
        api_key_configured=bool(context.settings.llm.openrouter_api_key),
    )
