"""Per-model token pricing and cost calculation."""

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from claude_session_monitor.types.records import TokenUsage


@dataclass(frozen=True)
class PricingEntry:
    """Rates in USD per 1,000 tokens."""
    input: float
    output: float
    cache_creation: float = 0.0
    cache_read: float = 0.0


# Baseline model assumed when a transcript never names one
DEFAULT_MODEL = "claude-3.5-sonnet"

_OPUS = PricingEntry(input=0.015, output=0.075, cache_creation=0.01875, cache_read=0.0015)
_SONNET = PricingEntry(input=0.003, output=0.015, cache_creation=0.00375, cache_read=0.0003)

# Per 1K tokens, 5m cache tier
MODEL_PRICING: dict[str, PricingEntry] = {
    "claude-opus-4": _OPUS,
    "claude-opus-4-20250514": _OPUS,
    "claude-sonnet-4": _SONNET,
    "claude-sonnet-4-20250514": _SONNET,
    "claude-3-opus": _OPUS,
    "claude-3-sonnet": _SONNET,
    "claude-3.5-sonnet": _SONNET,
    "claude-3.7-sonnet": _SONNET,
    "claude-3-haiku": PricingEntry(input=0.00025, output=0.00125, cache_creation=0.0003, cache_read=0.00003),
    "claude-3.5-haiku": PricingEntry(input=0.0008, output=0.004, cache_creation=0.001, cache_read=0.00008),
}

# Unknown models are priced as Sonnet rather than zero
DEFAULT_PRICING = _SONNET


def lookup_pricing(model: str) -> PricingEntry:
    """Return the pricing entry for an exact model name, else DEFAULT_PRICING."""
    return MODEL_PRICING.get(model, DEFAULT_PRICING)


def calculate_cost(usage: "TokenUsage", entry: PricingEntry) -> float:
    """Calculate cost in USD for the usage counters at the given rates."""
    return (
        usage.input_tokens / 1000.0 * entry.input
        + usage.output_tokens / 1000.0 * entry.output
        + usage.cache_creation_input_tokens / 1000.0 * entry.cache_creation
        + usage.cache_read_input_tokens / 1000.0 * entry.cache_read
    )
