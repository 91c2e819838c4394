"""API route exports."""

from .health import router as health_router
from .transcription import router as transcription_router

__all__ = ["health_router", "transcription_router"]
