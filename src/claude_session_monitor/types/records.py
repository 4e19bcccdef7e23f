"""Record-level types for parsed JSONL transcript lines."""

from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Union

from claude_session_monitor.utils.pricing import DEFAULT_PRICING, PricingEntry, calculate_cost

# Decoded JSON value tree kept for heuristic scans
MetadataValue = Union[
    str, int, float, bool, None,
    list["MetadataValue"],
    dict[str, "MetadataValue"],
]


@dataclass
class TokenUsage:
    input_tokens: int = 0
    output_tokens: int = 0
    cache_creation_input_tokens: int = 0
    cache_read_input_tokens: int = 0
    pricing: PricingEntry = field(default=DEFAULT_PRICING, compare=False, repr=False)

    @property
    def total(self) -> int:
        return (self.input_tokens + self.output_tokens +
                self.cache_creation_input_tokens + self.cache_read_input_tokens)

    @property
    def estimated_cost(self) -> float:
        """Cost is derived from the counters on every access, never stored."""
        return calculate_cost(self, self.pricing)

    def priced_with(self, entry: PricingEntry) -> "TokenUsage":
        return replace(self, pricing=entry)

    def __add__(self, other: "TokenUsage") -> "TokenUsage":
        if not isinstance(other, TokenUsage):
            return NotImplemented
        return TokenUsage(
            input_tokens=self.input_tokens + other.input_tokens,
            output_tokens=self.output_tokens + other.output_tokens,
            cache_creation_input_tokens=self.cache_creation_input_tokens + other.cache_creation_input_tokens,
            cache_read_input_tokens=self.cache_read_input_tokens + other.cache_read_input_tokens,
            pricing=self.pricing,
        )


@dataclass
class LogRecord:
    timestamp: datetime
    record_type: str = ""
    role: str = ""
    content: str = ""
    usage: TokenUsage = field(default_factory=TokenUsage)
    raw_metadata: dict[str, MetadataValue] = field(default_factory=dict)
    message_id: str = ""
    model: str = ""
