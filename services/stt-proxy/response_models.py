"""Response models for the stt-proxy API."""

from pydantic import BaseModel, ConfigDict, Field


class TranscriptionResponse(BaseModel):
    """Response returned after a successful transcription."""

    text: str
    language: str
    confidence: float | None = None
    provider: str


class QuotaExceededResponse(BaseModel):
    """Response returned when the caller's usage ceiling is reached."""

    model_config = ConfigDict(populate_by_name=True)

    error: str = "Usage limit exceeded"
    reason: str
    tier: str
    quota_remaining: float = Field(alias="quotaRemaining")
    fallback_available: bool = Field(default=True, alias="fallbackAvailable")


class ErrorResponse(BaseModel):
    """Generic error body."""

    error: str
    details: str | None = None


class HealthResponse(BaseModel):
    status: str = "ok"
    providers: list[str]
