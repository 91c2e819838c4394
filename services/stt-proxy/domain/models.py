"""Domain models for the speech-to-text proxy."""

from datetime import datetime, timezone
from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, Field


class Principal(BaseModel, frozen=True):
    """Authenticated caller, as resolved from the bearer credential."""

    user_id: str
    tenant_id: str


class StorageAudio(BaseModel, frozen=True):
    """Audio stored in object storage under a path."""

    path: str


class UrlAudio(BaseModel, frozen=True):
    """Audio already reachable at an external URL."""

    url: str


class InlineAudio(BaseModel, frozen=True):
    """Audio carried in the request itself, raw or base64 encoded."""

    data: bytes
    base64_encoded: bool = False
    format: str | None = None
    mime_type: str | None = None


AudioRef = StorageAudio | UrlAudio | InlineAudio


class TranscriptionRequest(BaseModel, frozen=True):
    """A validated transcription request with exactly one audio source."""

    audio: AudioRef
    language: str | None = None
    candidate_languages: tuple[str, ...] = ()
    principal: Principal


class ResolvedAudio(BaseModel, frozen=True):
    """Audio ready to hand to a provider: in-memory bytes or a fetchable URL."""

    url: str | None = None
    data: bytes | None = None
    mime_type: str = "audio/mp4"
    size_bytes: int | None = None

    @property
    def description(self) -> str:
        if self.data is not None:
            return f"inline:{len(self.data)}B"
        return "url"


class ProviderResult(BaseModel, frozen=True):
    """Transcript returned by the provider that ended the fallback chain."""

    text: str
    language: str
    confidence: float | None = Field(default=None, ge=0.0, le=1.0)
    provider: str
    duration_seconds: float | None = Field(default=None, exclude=True)


class ProviderAttempt(BaseModel, frozen=True):
    """One failed provider call within a fallback run."""

    provider: str
    error: str
    message: str
    elapsed_ms: int = 0


class QuotaStatus(BaseModel, frozen=True):
    """Outcome of a pre-flight quota check."""

    allowed: bool
    tier: str
    quota_remaining: float
    reason: str | None = None
    used: float | None = None
    ceiling: float | None = None


class UsageRecord(BaseModel, frozen=True):
    """Write-once accounting entry produced after a response."""

    user_id: str
    tenant_id: str
    service: str = "stt"
    units: float
    cost_estimate: Decimal
    provider: str
    language: str
    status: Literal["success", "failed"] = "success"
    latency_ms: int = 0
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class TranscriptionOutcome(BaseModel, frozen=True):
    """Everything the HTTP layer needs to answer a successful request."""

    result: ProviderResult
    quota: QuotaStatus
    latency_ms: int
    cost_estimate: Decimal
    attempts: tuple[ProviderAttempt, ...] = ()
