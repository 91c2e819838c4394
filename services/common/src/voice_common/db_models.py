from datetime import datetime, timezone
from decimal import Decimal
from uuid import UUID, uuid4

from sqlmodel import Field, SQLModel


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class VoiceUsageLog(SQLModel, table=True):
    """Append-only audit row for one billable voice request."""

    __tablename__ = "voice_usage_logs"

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    user_id: str = Field(max_length=255, index=True)
    tenant_id: str = Field(max_length=255, index=True)
    service: str = Field(max_length=32)
    units: float
    cost_estimate: Decimal = Field(default=Decimal("0"), max_digits=12, decimal_places=6)
    provider: str = Field(max_length=64)
    language: str = Field(max_length=16)
    status: str = Field(max_length=16)
    latency_ms: int = 0
    created_at: datetime = Field(default_factory=_utcnow)
