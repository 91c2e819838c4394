"""Static per-provider pricing used for cost estimates."""

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal

COST_QUANTUM = Decimal("0.000001")


@dataclass(frozen=True)
class ProviderPricing:
    """Price of one minute of transcribed audio, in USD."""

    rate: Decimal


PRICING: dict[str, ProviderPricing] = {
    "openai-whisper": ProviderPricing(Decimal("0.006")),
    "azure": ProviderPricing(Decimal("0.0167")),
    "deepgram": ProviderPricing(Decimal("0.0043")),
    "assemblyai": ProviderPricing(Decimal("0.0062")),
}


def estimate_cost(
    provider: str, units: float, pricing: dict[str, ProviderPricing] = PRICING
) -> Decimal:
    """Returns the estimated cost of ``units`` audio minutes on ``provider``; 0 if unpriced."""
    entry = pricing.get(provider)
    if entry is None or units <= 0:
        return Decimal("0").quantize(COST_QUANTUM)
    return (entry.rate * Decimal(str(units))).quantize(COST_QUANTUM, rounding=ROUND_HALF_UP)
