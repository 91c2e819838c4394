"""Liveness endpoint."""

from typing import Annotated

from fastapi import APIRouter, Depends

from dependencies import get_provider_ids
from response_models import HealthResponse

router = APIRouter(tags=["health"])


@router.get("/health", response_model=HealthResponse)
def health(provider_ids: Annotated[list[str], Depends(get_provider_ids)]) -> HealthResponse:
    """Reports that the process is up and which providers it will try."""
    return HealthResponse(providers=provider_ids)
