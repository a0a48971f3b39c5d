"""Liquidity and position math for concentrated-liquidity pools.

Pure integer math on Q64.96 sqrt prices, mirroring LiquidityAmounts / Position in
the v3 periphery and core. Everything here feeds fund-moving values, so malformed
inputs raise instead of returning a best guess.
"""

from __future__ import annotations

from decimal import Context, Decimal

from clamm_paths.core.adapters.models import (
    Position,
    PositionValuation,
    TickFeeGrowth,
)
from clamm_paths.core.constants.base import MAX_UINT128, MAX_UINT256, Q96, Q192
from clamm_paths.core.errors import MalformedPriceStateError
from clamm_paths.core.utils.tick_math import sqrt_price_x96_at_tick

_CTX = Context(prec=80)


def _require_positive_sqrt(sqrt_price_x96: int, what: str = "sqrtPriceX96") -> None:
    if sqrt_price_x96 <= 0:
        raise MalformedPriceStateError(f"{what} must be positive, got {sqrt_price_x96}")


def _check_range(tick_lower: int, tick_upper: int) -> None:
    if tick_lower >= tick_upper:
        raise ValueError(
            f"tick_lower must be below tick_upper: {tick_lower} >= {tick_upper}"
        )


def _sorted_bounds(sqrt_a: int, sqrt_b: int) -> tuple[int, int]:
    a, b = sorted((int(sqrt_a), int(sqrt_b)))
    _require_positive_sqrt(a, "sqrt price bound")
    return a, b


def amount0_for_liquidity(sqrt_a: int, sqrt_b: int, liquidity: int) -> int:
    a, b = _sorted_bounds(sqrt_a, sqrt_b)
    return ((int(liquidity) << 96) * (b - a) // b) // a


def amount1_for_liquidity(sqrt_a: int, sqrt_b: int, liquidity: int) -> int:
    a, b = _sorted_bounds(sqrt_a, sqrt_b)
    return int(liquidity) * (b - a) // Q96


def liquidity_for_amount0(sqrt_a: int, sqrt_b: int, amount0: int) -> int:
    a, b = _sorted_bounds(sqrt_a, sqrt_b)
    if a == b:
        return 0
    intermediate = a * b // Q96
    return int(amount0) * intermediate // (b - a)


def liquidity_for_amount1(sqrt_a: int, sqrt_b: int, amount1: int) -> int:
    a, b = _sorted_bounds(sqrt_a, sqrt_b)
    if a == b:
        return 0
    return int(amount1) * Q96 // (b - a)


def amounts_for_liquidity(
    liquidity: int,
    tick_lower: int,
    tick_upper: int,
    current_tick: int,
    current_sqrt_price_x96: int,
) -> tuple[int, int]:
    """Token amounts (raw) held by ``liquidity`` over ``[tick_lower, tick_upper)``.

    Below the range everything is token0, at or above it everything is token1,
    inside it the split happens at the current sqrt price.
    """
    if liquidity < 0:
        raise ValueError(f"liquidity must be non-negative, got {liquidity}")
    _check_range(tick_lower, tick_upper)
    if liquidity == 0:
        return 0, 0

    sqrt_a = sqrt_price_x96_at_tick(tick_lower)
    sqrt_b = sqrt_price_x96_at_tick(tick_upper)

    if current_tick < tick_lower:
        return amount0_for_liquidity(sqrt_a, sqrt_b, liquidity), 0
    if current_tick >= tick_upper:
        return 0, amount1_for_liquidity(sqrt_a, sqrt_b, liquidity)

    _require_positive_sqrt(current_sqrt_price_x96)
    # tick and sqrt price can disagree by a rounding step; stay inside the range
    sqrt_p = min(max(int(current_sqrt_price_x96), sqrt_a), sqrt_b)
    amount0 = amount0_for_liquidity(sqrt_p, sqrt_b, liquidity) if sqrt_p < sqrt_b else 0
    amount1 = amount1_for_liquidity(sqrt_a, sqrt_p, liquidity) if sqrt_p > sqrt_a else 0
    return amount0, amount1


def liquidity_for_amounts(
    sqrt_price_x96: int,
    tick_lower: int,
    tick_upper: int,
    amount0: int,
    amount1: int,
) -> int:
    _check_range(tick_lower, tick_upper)
    _require_positive_sqrt(sqrt_price_x96)
    sqrt_a = sqrt_price_x96_at_tick(tick_lower)
    sqrt_b = sqrt_price_x96_at_tick(tick_upper)

    if sqrt_price_x96 <= sqrt_a:
        return liquidity_for_amount0(sqrt_a, sqrt_b, amount0)
    if sqrt_price_x96 >= sqrt_b:
        return liquidity_for_amount1(sqrt_a, sqrt_b, amount1)
    return min(
        liquidity_for_amount0(sqrt_price_x96, sqrt_b, amount0),
        liquidity_for_amount1(sqrt_a, sqrt_price_x96, amount1),
    )


def counter_amount_at_spot_price(
    known_amount: Decimal | int | str,
    known_is_token0: bool,
    sqrt_price_x96: int,
    decimals0: int,
    decimals1: int,
) -> Decimal:
    """Human amount of the other token worth ``known_amount`` at the spot price.

    Uses only the instantaneous pool price (token1 per token0, decimal adjusted), so
    it matches the deposit ratio exactly only for a full-range position. Use
    ``counter_amount_for_range`` when the target range is known.
    """
    _require_positive_sqrt(sqrt_price_x96)
    amount = Decimal(str(known_amount)) if not isinstance(known_amount, Decimal) else known_amount
    if not amount.is_finite() or amount < 0:
        raise ValueError(f"known_amount must be a non-negative number, got {known_amount}")

    sqrt_dec = Decimal(int(sqrt_price_x96))
    raw_price = _CTX.divide(_CTX.multiply(sqrt_dec, sqrt_dec), Decimal(Q192))
    price = _CTX.multiply(raw_price, _CTX.power(Decimal(10), decimals0 - decimals1))
    if known_is_token0:
        return _CTX.multiply(amount, price)
    return _CTX.divide(amount, price)


def counter_amount_for_range(
    known_amount: int,
    known_is_token0: bool,
    sqrt_price_x96: int,
    tick_lower: int,
    tick_upper: int,
) -> int:
    """Raw amount of the other token a ``[tick_lower, tick_upper)`` deposit needs.

    Returns 0 when the current price sits on the side of the range where only the
    known token is deposited.
    """
    if known_amount < 0:
        raise ValueError(f"known_amount must be non-negative, got {known_amount}")
    _check_range(tick_lower, tick_upper)
    _require_positive_sqrt(sqrt_price_x96)
    sqrt_a = sqrt_price_x96_at_tick(tick_lower)
    sqrt_b = sqrt_price_x96_at_tick(tick_upper)
    sqrt_p = int(sqrt_price_x96)

    if known_is_token0:
        # below the range only token0 is needed, above it token0 cannot be deposited
        if sqrt_p <= sqrt_a:
            return 0
        if sqrt_p >= sqrt_b:
            raise ValueError("range is below the current price; only token1 can be deposited")
        liquidity = liquidity_for_amount0(sqrt_p, sqrt_b, known_amount)
        return amount1_for_liquidity(sqrt_a, sqrt_p, liquidity)

    if sqrt_p >= sqrt_b:
        return 0
    if sqrt_p <= sqrt_a:
        raise ValueError("range is above the current price; only token0 can be deposited")
    liquidity = liquidity_for_amount1(sqrt_a, sqrt_p, known_amount)
    return amount0_for_liquidity(sqrt_p, sqrt_b, liquidity)


def fee_growth_inside(
    tick_lower: int,
    tick_upper: int,
    current_tick: int,
    fee_growth_global_x128: int,
    lower_outside_x128: int,
    upper_outside_x128: int,
) -> int:
    """Fee growth per unit of liquidity inside the range, modulo 2**256."""
    if current_tick >= tick_lower:
        below = lower_outside_x128
    else:
        below = (fee_growth_global_x128 - lower_outside_x128) & MAX_UINT256

    if current_tick < tick_upper:
        above = upper_outside_x128
    else:
        above = (fee_growth_global_x128 - upper_outside_x128) & MAX_UINT256

    return (fee_growth_global_x128 - below - above) & MAX_UINT256


def fees_earned(
    position: Position,
    fee_growth_global0_x128: int,
    fee_growth_global1_x128: int,
    lower: TickFeeGrowth,
    upper: TickFeeGrowth,
    current_tick: int,
) -> tuple[int, int]:
    """Uncollected fees accrued since the position's last fee-growth snapshot.

    The counters are uint256 and wrap; deltas are taken modulo 2**256 the way the
    pool contract does, so a "negative" delta resolves to its wrapped value rather
    than an error, and the result is truncated to uint128 like ``tokensOwed``.
    """
    inside0 = fee_growth_inside(
        position.tick_lower,
        position.tick_upper,
        current_tick,
        fee_growth_global0_x128,
        lower.fee_growth_outside0_x128,
        upper.fee_growth_outside0_x128,
    )
    inside1 = fee_growth_inside(
        position.tick_lower,
        position.tick_upper,
        current_tick,
        fee_growth_global1_x128,
        lower.fee_growth_outside1_x128,
        upper.fee_growth_outside1_x128,
    )

    delta0 = (inside0 - position.fee_growth_inside0_last_x128) & MAX_UINT256
    delta1 = (inside1 - position.fee_growth_inside1_last_x128) & MAX_UINT256

    fees0 = ((delta0 * position.liquidity) >> 128) & MAX_UINT128
    fees1 = ((delta1 * position.liquidity) >> 128) & MAX_UINT128
    return fees0, fees1


def is_position_in_range(tick_lower: int, tick_upper: int, current_tick: int) -> bool:
    return tick_lower <= current_tick < tick_upper


def value_position(
    position: Position,
    pool_tick: int,
    pool_sqrt_price_x96: int,
    fee_growth_global0_x128: int,
    fee_growth_global1_x128: int,
    lower: TickFeeGrowth,
    upper: TickFeeGrowth,
) -> PositionValuation:
    amount0, amount1 = amounts_for_liquidity(
        position.liquidity,
        position.tick_lower,
        position.tick_upper,
        pool_tick,
        pool_sqrt_price_x96,
    )
    fees0, fees1 = fees_earned(
        position,
        fee_growth_global0_x128,
        fee_growth_global1_x128,
        lower,
        upper,
        pool_tick,
    )
    return PositionValuation(
        amount0=amount0,
        amount1=amount1,
        fees0=fees0 + position.tokens_owed0,
        fees1=fees1 + position.tokens_owed1,
        in_range=is_position_in_range(position.tick_lower, position.tick_upper, pool_tick),
    )
