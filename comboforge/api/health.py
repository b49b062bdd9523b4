"""
Health check endpoints.

Provides liveness and readiness probes. Readiness checks that card data can
be loaded.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Response, status
from pydantic import BaseModel

from comboforge.api.dependencies import get_card_repository
from comboforge.services.card_repository import CardQuery, CardRepository

router = APIRouter(tags=["health"])


class HealthResponse(BaseModel):
    """Liveness/readiness status."""

    status: str
    cards: int | None = None


@router.get("/health", response_model=HealthResponse)
def health() -> HealthResponse:
    """
    Liveness probe.

    Healthy whenever the process is serving. Card data is not loaded.
    """
    return HealthResponse(status="healthy")


@router.get(
    "/ready",
    response_model=HealthResponse,
    responses={503: {"model": HealthResponse}},
)
def ready(
    response: Response,
    repository: Annotated[CardRepository, Depends(get_card_repository)],
) -> HealthResponse:
    """
    Readiness probe.

    Returns 503 if the card repository is empty.
    """
    count = len(repository.fetch_cards(CardQuery()))
    if count == 0:
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
        return HealthResponse(status="not ready", cards=0)
    return HealthResponse(status="ready", cards=count)
