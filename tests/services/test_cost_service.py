"""
Tests for cost estimation.
"""

from decimal import Decimal

import pytest

from weekend_backend.services.cost_service import (
    CURRENT_PRICING,
    ModelPricing,
    PricingTable,
    estimate_cost,
)

FLASH = "gemini-2.5-flash"


def test_zero_usage_costs_nothing():
    cost = estimate_cost(0, 0, 0, FLASH)

    assert cost.model_cost == 0
    assert cost.search_cost == 0
    assert cost.total == 0


def test_flash_pricing():
    # 1M input at $0.30 + 1M output at $2.50 + 4 searches at $0.001
    cost = estimate_cost(1_000_000, 1_000_000, 4, FLASH)

    assert cost.model_cost == pytest.approx(2.80)
    assert cost.search_cost == pytest.approx(0.004)
    assert cost.total == pytest.approx(2.804)


def test_rounds_half_up_to_six_decimals():
    table = PricingTable(
        version="test",
        models={"m": ModelPricing(Decimal("0.5"), Decimal("0"))},
        search_cost_per_call=Decimal("0"),
    )

    # 1 token * $0.5 / 1M = 0.0000005 -> 0.000001
    assert estimate_cost(1, 0, 0, "m", pricing=table).total == pytest.approx(0.000001)


def test_total_is_sum_of_breakdown():
    cost = estimate_cost(12_345, 6_789, 3, FLASH)

    assert cost.total == pytest.approx(cost.model_cost + cost.search_cost, abs=1e-6)


@pytest.mark.parametrize(
    "more",
    [
        (2000, 500, 2),
        (1000, 900, 2),
        (1000, 500, 5),
    ],
)
def test_cost_is_monotonic_in_each_counter(more):
    base = estimate_cost(1000, 500, 2, FLASH)

    assert estimate_cost(*more, FLASH).total >= base.total


def test_unknown_model_raises():
    with pytest.raises(ValueError, match="Unsupported model"):
        estimate_cost(10, 10, 1, "gpt-4o")


def test_negative_counters_raise():
    with pytest.raises(ValueError):
        estimate_cost(-1, 0, 0, FLASH)
    with pytest.raises(ValueError):
        estimate_cost(0, 0, -1, FLASH)


def test_current_pricing_is_versioned():
    assert CURRENT_PRICING.version
    assert FLASH in CURRENT_PRICING.models
