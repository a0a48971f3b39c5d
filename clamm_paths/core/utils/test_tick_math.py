from __future__ import annotations

from decimal import Decimal

import pytest

from clamm_paths.core.constants.base import (
    MAX_SQRT_RATIO,
    MAX_TICK,
    MIN_SQRT_RATIO,
    MIN_TICK,
    Q96,
    TICK_SPACING,
)
from clamm_paths.core.errors import InvalidFeeTierError
from clamm_paths.core.utils.tick_math import (
    align_tick_range_from_percent,
    full_range_ticks,
    human_price_from_tick,
    price_from_tick,
    price_to_sqrt_price_x96,
    round_tick_down,
    round_tick_up,
    sqrt_price_x96_at_tick,
    sqrt_price_x96_to_price,
    tick_at_sqrt_price_x96,
    tick_from_human_price,
    tick_from_price,
    tick_spacing_for_fee_tier,
)

SAMPLED_TICKS = sorted(
    {*range(MIN_TICK, MAX_TICK + 1, 7919), MIN_TICK, MIN_TICK + 1, -1, 0, 1, MAX_TICK - 1, MAX_TICK}
)


@pytest.mark.parametrize("tick", SAMPLED_TICKS)
def test_tick_price_round_trip(tick):
    assert tick_from_price(price_from_tick(tick)) == tick


def test_price_from_tick_zero_is_one():
    assert price_from_tick(0) == 1


def test_price_from_tick_rejects_out_of_range():
    with pytest.raises(ValueError, match="out of range"):
        price_from_tick(MAX_TICK + 1)
    with pytest.raises(ValueError, match="out of range"):
        price_from_tick(MIN_TICK - 1)


def test_tick_from_price_between_ticks_floors():
    halfway = (price_from_tick(100) + price_from_tick(101)) / 2
    assert tick_from_price(halfway) == 100
    halfway_neg = (price_from_tick(-101) + price_from_tick(-100)) / 2
    assert tick_from_price(halfway_neg) == -101


@pytest.mark.parametrize("bad", [0, -1, "0", "nan"])
def test_tick_from_price_rejects_non_positive(bad):
    with pytest.raises(ValueError):
        tick_from_price(bad)


def test_human_price_scales_by_decimals():
    # USDC (6) as token0, WETH (18) as token1
    assert human_price_from_tick(0, 6, 18) == Decimal("1e-12")
    assert tick_from_human_price(Decimal("1e-12"), 6, 18) == 0


def test_sqrt_price_at_tick_matches_tickmath_bounds():
    assert sqrt_price_x96_at_tick(0) == Q96
    assert sqrt_price_x96_at_tick(MIN_TICK) == MIN_SQRT_RATIO
    assert sqrt_price_x96_at_tick(MAX_TICK) == MAX_SQRT_RATIO


def test_sqrt_price_at_tick_is_increasing():
    values = [sqrt_price_x96_at_tick(t) for t in (-1000, -1, 0, 1, 1000)]
    assert values == sorted(values)
    assert len(set(values)) == len(values)


def test_tick_at_sqrt_price():
    assert tick_at_sqrt_price_x96(MIN_SQRT_RATIO) == MIN_TICK
    assert tick_at_sqrt_price_x96(MAX_SQRT_RATIO - 1) == MAX_TICK - 1
    assert tick_at_sqrt_price_x96(Q96) == 0
    assert tick_at_sqrt_price_x96(sqrt_price_x96_at_tick(-12345)) == -12345
    assert tick_at_sqrt_price_x96(sqrt_price_x96_at_tick(12345) - 1) == 12344


def test_tick_at_sqrt_price_rejects_out_of_range():
    with pytest.raises(ValueError):
        tick_at_sqrt_price_x96(MIN_SQRT_RATIO - 1)
    with pytest.raises(ValueError):
        tick_at_sqrt_price_x96(MAX_SQRT_RATIO)


def test_sqrt_price_conversions():
    assert sqrt_price_x96_to_price(Q96) == 1
    assert sqrt_price_x96_to_price(2 * Q96) == 4
    assert sqrt_price_x96_to_price(0) == 0
    assert price_to_sqrt_price_x96(1) == Q96
    assert price_to_sqrt_price_x96(4) == 2 * Q96
    with pytest.raises(ValueError):
        price_to_sqrt_price_x96(0)


def test_sqrt_price_conversions_with_decimals():
    sqrt = price_to_sqrt_price_x96(Decimal("0.0005"), 6, 18)
    price = sqrt_price_x96_to_price(sqrt, 6, 18)
    assert abs(price - Decimal("0.0005")) < Decimal("1e-24")


def test_tick_spacing_for_fee_tier():
    assert tick_spacing_for_fee_tier(100) == 1
    assert tick_spacing_for_fee_tier(500) == 10
    assert tick_spacing_for_fee_tier(3000) == 60
    assert tick_spacing_for_fee_tier(10000) == 200


def test_unknown_fee_tier_is_reported():
    with pytest.raises(InvalidFeeTierError, match="Unknown fee tier 2500") as exc_info:
        tick_spacing_for_fee_tier(2500)
    assert exc_info.value.fee_tier == 2500
    assert isinstance(exc_info.value, ValueError)


def test_round_tick_directions():
    assert round_tick_down(61, 60) == 60
    assert round_tick_up(61, 60) == 120
    assert round_tick_down(-61, 60) == -120
    assert round_tick_up(-61, 60) == -60
    assert round_tick_down(120, 60) == 120
    assert round_tick_up(120, 60) == 120
    with pytest.raises(ValueError):
        round_tick_down(1, 0)


def test_full_range_ticks():
    assert full_range_ticks(60) == (-887220, 887220)
    assert full_range_ticks(1) == (MIN_TICK, MAX_TICK)
    assert full_range_ticks(200) == (-887200, 887200)


def test_align_unbounded_is_full_range():
    assert align_tick_range_from_percent(1234, None, None, 60) == full_range_ticks(60)


def test_align_lower_minus_hundred_is_full_range_lower():
    lower, upper = align_tick_range_from_percent(0, -100, 5, 60)
    assert lower == full_range_ticks(60)[0]
    assert upper == 540


def test_align_symmetric_window():
    # ln(0.95)/ln(1.0001) ~ -512.96, ln(1.05)/ln(1.0001) ~ 487.9
    assert align_tick_range_from_percent(0, -5, 5, 60) == (-540, 540)


def test_align_window_never_shrinks():
    lower, upper = align_tick_range_from_percent(0, -5, 5, 60)
    assert price_from_tick(lower) <= Decimal("0.95")
    assert price_from_tick(upper) >= Decimal("1.05")


def test_align_collapsed_range_is_widened():
    lower, upper = align_tick_range_from_percent(0, 0, 0, 60)
    assert (lower, upper) == (0, 60)


def test_align_collapsed_at_top_widens_downward():
    floor_tick, ceil_tick = full_range_ticks(60)
    lower, upper = align_tick_range_from_percent(MAX_TICK, 0, None, 60)
    assert (lower, upper) == (ceil_tick - 60, ceil_tick)


def test_align_rejects_max_at_minus_hundred():
    with pytest.raises(ValueError):
        align_tick_range_from_percent(0, None, -100, 60)


@pytest.mark.parametrize(
    "min_pct,max_pct",
    [(float("nan"), 5), (-5, float("nan")), (float("-inf"), None), (None, Decimal("Infinity"))],
)
def test_align_rejects_non_finite_percent(min_pct, max_pct):
    with pytest.raises(ValueError, match="must be finite"):
        align_tick_range_from_percent(0, min_pct, max_pct, 60)


PERCENTS = [None, -99.9, -50, -5, -0.1, 0, 0.1, 5, 50, 200, 10_000]


@pytest.mark.parametrize("fee_tier", sorted(TICK_SPACING))
@pytest.mark.parametrize("current_tick", [MIN_TICK, -201_000, -7, 0, 7, 85_176, MAX_TICK])
def test_align_invariant(fee_tier, current_tick):
    spacing = tick_spacing_for_fee_tier(fee_tier)
    floor_tick, ceil_tick = full_range_ticks(spacing)
    for min_pct in PERCENTS:
        for max_pct in PERCENTS:
            lower, upper = align_tick_range_from_percent(
                current_tick, min_pct, max_pct, spacing
            )
            assert lower < upper, (min_pct, max_pct)
            assert lower % spacing == 0
            assert upper % spacing == 0
            assert floor_tick <= lower and upper <= ceil_tick
