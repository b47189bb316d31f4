"""
Cost estimation for agent runs.

Converts raw usage counters (model tokens, web search calls) into a USD
estimate with a per-provider breakdown. Pricing tables are versioned inputs:
a stored cost is a snapshot taken with the table that was current at storage
time and is never recomputed.
"""

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Dict

from weekend_backend.schemas.cache import CostBreakdown

_MILLION = Decimal("1000000")
_PRECISION = Decimal("0.000001")


@dataclass(frozen=True)
class ModelPricing:
    """Per-token pricing for a specific model."""
    input_cost_per_million: Decimal
    output_cost_per_million: Decimal


@dataclass(frozen=True)
class PricingTable:
    """Versioned pricing for every supported model plus the search provider."""
    version: str
    models: Dict[str, ModelPricing]
    search_cost_per_call: Decimal

    def get_pricing(self, model: str) -> ModelPricing:
        """Get pricing for a specific model.

        Args:
            model: Model identifier

        Returns:
            ModelPricing for the model

        Raises:
            ValueError: If model is not supported
        """
        if model not in self.models:
            raise ValueError(f"Unsupported model: {model} (pricing {self.version})")
        return self.models[model]


CURRENT_PRICING = PricingTable(
    version="2025-06",
    models={
        "gemini-2.5-flash": ModelPricing(
            input_cost_per_million=Decimal("0.30"),
            output_cost_per_million=Decimal("2.50"),
        ),
        "gemini-2.5-flash-lite": ModelPricing(
            input_cost_per_million=Decimal("0.10"),
            output_cost_per_million=Decimal("0.40"),
        ),
        "gemini-2.5-pro": ModelPricing(
            input_cost_per_million=Decimal("1.25"),
            output_cost_per_million=Decimal("10.00"),
        ),
    },
    # Serper: $0.001 per search
    search_cost_per_call=Decimal("0.001"),
)


def _round(value: Decimal) -> float:
    return float(value.quantize(_PRECISION, rounding=ROUND_HALF_UP))


def estimate_cost(
    input_tokens: int,
    output_tokens: int,
    search_calls: int,
    model: str,
    pricing: PricingTable = CURRENT_PRICING,
) -> CostBreakdown:
    """Estimate the cost of one agent run.

    Args:
        input_tokens: Prompt tokens summed over every model call
        output_tokens: Completion tokens summed over every model call
        search_calls: Number of executed web searches
        model: Model identifier used for the run
        pricing: Pricing table to apply

    Returns:
        CostBreakdown rounded to 6 decimal places

    Raises:
        ValueError: If a counter is negative or the model is not priced
    """
    if input_tokens < 0 or output_tokens < 0 or search_calls < 0:
        raise ValueError("usage counters must be >= 0")

    model_pricing = pricing.get_pricing(model)

    model_cost = (
        Decimal(input_tokens) * model_pricing.input_cost_per_million
        + Decimal(output_tokens) * model_pricing.output_cost_per_million
    ) / _MILLION
    search_cost = Decimal(search_calls) * pricing.search_cost_per_call

    return CostBreakdown(
        model_cost=_round(model_cost),
        search_cost=_round(search_cost),
        total=_round(model_cost + search_cost),
    )
