"""Tick / sqrt-price / price conversions for concentrated-liquidity pools.

Prices are token1 per token0. "Raw" prices are in base units (what the pool stores);
"human" prices are scaled by the token decimals. All conversions that feed amounts
use ``Decimal`` in a private 80-digit context, so ``1.0001 ** tick`` is evaluated
precisely enough for ``tick -> price -> tick`` to round-trip over the whole range.
"""

from __future__ import annotations

from decimal import ROUND_CEILING, ROUND_FLOOR, Context, Decimal, InvalidOperation

from clamm_paths.core.constants.base import (
    MAX_SQRT_RATIO,
    MAX_TICK,
    MAX_UINT256,
    MIN_SQRT_RATIO,
    MIN_TICK,
    Q96,
    Q192,
    TICK_BASE,
    TICK_SPACING,
)
from clamm_paths.core.errors import InvalidFeeTierError

_CTX = Context(prec=80)
_TICK_BASE = Decimal(TICK_BASE)
_LN_TICK_BASE = _CTX.ln(_TICK_BASE)
_Q96_DEC = Decimal(Q96)
_Q192_DEC = Decimal(Q192)


def _to_decimal(value: Decimal | int | float | str) -> Decimal:
    if isinstance(value, Decimal):
        return value
    if isinstance(value, int) and not isinstance(value, bool):
        return Decimal(value)
    try:
        return Decimal(str(value).strip())
    except InvalidOperation as exc:
        raise ValueError(f"Invalid numeric value: {value!r}") from exc


def _check_tick(tick: int) -> None:
    if tick < MIN_TICK or tick > MAX_TICK:
        raise ValueError(f"tick {tick} out of range [{MIN_TICK}, {MAX_TICK}]")


def price_from_tick(tick: int) -> Decimal:
    """Raw price ``1.0001 ** tick``."""
    tick = int(tick)
    _check_tick(tick)
    return _CTX.power(_TICK_BASE, tick)


def tick_from_price(price: Decimal | int | float | str) -> int:
    """Greatest tick whose price is ``<= price`` (``floor(log_1.0001(price))``)."""
    p = _to_decimal(price)
    if not p.is_finite() or p <= 0:
        raise ValueError(f"price must be positive, got {price!r}")

    estimate = _CTX.divide(_CTX.ln(p), _LN_TICK_BASE)
    tick = int(estimate.to_integral_value(rounding=ROUND_FLOOR))
    if tick > MAX_TICK or tick < MIN_TICK:
        raise ValueError(f"price {price!r} is outside the supported tick range")

    # ln() is rounded; settle exact boundaries against price_from_tick itself
    while tick < MAX_TICK and price_from_tick(tick + 1) <= p:
        tick += 1
    while tick > MIN_TICK and price_from_tick(tick) > p:
        tick -= 1
    if price_from_tick(tick) > p:
        raise ValueError(f"price {price!r} is below the minimum tick price")
    return tick


def human_price_from_tick(tick: int, decimals0: int, decimals1: int) -> Decimal:
    return _CTX.multiply(
        price_from_tick(tick), _CTX.power(Decimal(10), decimals0 - decimals1)
    )


def tick_from_human_price(
    price: Decimal | int | float | str, decimals0: int, decimals1: int
) -> int:
    raw = _CTX.multiply(
        _to_decimal(price), _CTX.power(Decimal(10), decimals1 - decimals0)
    )
    return tick_from_price(raw)


def sqrt_price_x96_at_tick(tick: int) -> int:
    """Q64.96 sqrt ratio at ``tick``, bit-for-bit with TickMath.getSqrtRatioAtTick."""
    tick = int(tick)
    _check_tick(tick)

    abs_tick = tick if tick >= 0 else -tick
    ratio = (
        0xFFFCB933BD6FAD37AA2D162D1A594001
        if abs_tick & 0x1
        else 0x100000000000000000000000000000000
    )

    if abs_tick & 0x2:
        ratio = (ratio * 0xFFF97272373D413259A46990580E213A) >> 128
    if abs_tick & 0x4:
        ratio = (ratio * 0xFFF2E50F5F656932EF12357CF3C7FDCC) >> 128
    if abs_tick & 0x8:
        ratio = (ratio * 0xFFE5CACA7E10E4E61C3624EAA0941CD0) >> 128
    if abs_tick & 0x10:
        ratio = (ratio * 0xFFCB9843D60F6159C9DB58835C926644) >> 128
    if abs_tick & 0x20:
        ratio = (ratio * 0xFF973B41FA98C081472E6896DFB254C0) >> 128
    if abs_tick & 0x40:
        ratio = (ratio * 0xFF2EA16466C96A3843EC78B326B52861) >> 128
    if abs_tick & 0x80:
        ratio = (ratio * 0xFE5DEE046A99A2A811C461F1969C3053) >> 128
    if abs_tick & 0x100:
        ratio = (ratio * 0xFCBE86C7900A88AEDCFFC83B479AA3A4) >> 128
    if abs_tick & 0x200:
        ratio = (ratio * 0xF987A7253AC413176F2B074CF7815E54) >> 128
    if abs_tick & 0x400:
        ratio = (ratio * 0xF3392B0822B70005940C7A398E4B70F3) >> 128
    if abs_tick & 0x800:
        ratio = (ratio * 0xE7159475A2C29B7443B29C7FA6E889D9) >> 128
    if abs_tick & 0x1000:
        ratio = (ratio * 0xD097F3BDFD2022B8845AD8F792AA5825) >> 128
    if abs_tick & 0x2000:
        ratio = (ratio * 0xA9F746462D870FDF8A65DC1F90E061E5) >> 128
    if abs_tick & 0x4000:
        ratio = (ratio * 0x70D869A156D2A1B890BB3DF62BAF32F7) >> 128
    if abs_tick & 0x8000:
        ratio = (ratio * 0x31BE135F97D08FD981231505542FCFA6) >> 128
    if abs_tick & 0x10000:
        ratio = (ratio * 0x9AA508B5B7A84E1C677DE54F3E99BC9) >> 128
    if abs_tick & 0x20000:
        ratio = (ratio * 0x5D6AF8DEDB81196699C329225EE604) >> 128
    if abs_tick & 0x40000:
        ratio = (ratio * 0x2216E584F5FA1EA926041BEDFE98) >> 128
    if abs_tick & 0x80000:
        ratio = (ratio * 0x48A170391F7DC42444E8FA2) >> 128

    if tick > 0:
        ratio = MAX_UINT256 // ratio

    # Q128.128 -> Q64.96, rounding up
    return (ratio >> 32) + (1 if ratio & 0xFFFFFFFF else 0)


def tick_at_sqrt_price_x96(sqrt_price_x96: int) -> int:
    """Greatest tick whose sqrt ratio is ``<= sqrt_price_x96``."""
    sqrt_price_x96 = int(sqrt_price_x96)
    if sqrt_price_x96 < MIN_SQRT_RATIO or sqrt_price_x96 >= MAX_SQRT_RATIO:
        raise ValueError(f"sqrtPriceX96 {sqrt_price_x96} out of range")

    lo, hi = MIN_TICK, MAX_TICK
    while lo < hi:
        mid = (lo + hi + 1) // 2
        if sqrt_price_x96_at_tick(mid) <= sqrt_price_x96:
            lo = mid
        else:
            hi = mid - 1
    return lo


def sqrt_price_x96_to_price(
    sqrt_price_x96: int, decimals0: int = 0, decimals1: int = 0
) -> Decimal:
    if sqrt_price_x96 <= 0:
        return Decimal(0)
    sqrt_dec = Decimal(int(sqrt_price_x96))
    raw = _CTX.divide(_CTX.multiply(sqrt_dec, sqrt_dec), _Q192_DEC)
    return _CTX.multiply(raw, _CTX.power(Decimal(10), decimals0 - decimals1))


def price_to_sqrt_price_x96(
    price: Decimal | int | float | str, decimals0: int = 0, decimals1: int = 0
) -> int:
    p = _to_decimal(price)
    if not p.is_finite() or p <= 0:
        raise ValueError(f"price must be positive, got {price!r}")
    raw = _CTX.multiply(p, _CTX.power(Decimal(10), decimals1 - decimals0))
    return int(_CTX.multiply(_CTX.sqrt(raw), _Q96_DEC))


def tick_spacing_for_fee_tier(fee_tier: int) -> int:
    spacing = TICK_SPACING.get(int(fee_tier))
    if spacing is None:
        raise InvalidFeeTierError(int(fee_tier), list(TICK_SPACING))
    return spacing


def _check_spacing(spacing: int) -> None:
    if spacing <= 0:
        raise ValueError(f"tick spacing must be positive, got {spacing}")


def round_tick_down(tick: int, spacing: int) -> int:
    _check_spacing(spacing)
    # floor division rounds toward -inf for negative ticks too
    return (tick // spacing) * spacing


def round_tick_up(tick: int, spacing: int) -> int:
    _check_spacing(spacing)
    return -((-tick) // spacing) * spacing


def full_range_ticks(spacing: int) -> tuple[int, int]:
    return round_tick_up(MIN_TICK, spacing), round_tick_down(MAX_TICK, spacing)


def _tick_offset(percent: Decimal) -> Decimal:
    factor = _CTX.divide(_CTX.add(Decimal(100), percent), Decimal(100))
    return _CTX.divide(_CTX.ln(factor), _LN_TICK_BASE)


def _percent(value: float | Decimal, name: str) -> Decimal:
    percent = _to_decimal(value)
    if not percent.is_finite():
        raise ValueError(f"{name} must be finite, got {value!r}")
    return percent


def _snap(desired: Decimal, spacing: int, rounding: str) -> int:
    steps = _CTX.divide(desired, Decimal(spacing)).to_integral_value(rounding=rounding)
    return int(steps) * spacing


def align_tick_range_from_percent(
    current_tick: int,
    min_percent: float | Decimal | None,
    max_percent: float | Decimal | None,
    spacing: int,
) -> tuple[int, int]:
    """Tick bounds for a price window of ``current * (100 + percent) / 100``.

    ``None`` on a side means unbounded (full range on that side). The lower bound
    rounds down and the upper bound rounds up onto the spacing grid, so the aligned
    range always covers the requested window. A range that collapses after rounding
    is widened by one spacing unit.
    """
    _check_spacing(spacing)
    floor_tick, ceil_tick = full_range_ticks(spacing)
    min_dec = None if min_percent is None else _percent(min_percent, "min_percent")
    max_dec = None if max_percent is None else _percent(max_percent, "max_percent")

    if min_dec is None or min_dec <= -100:
        tick_lower = floor_tick
    else:
        desired = _CTX.add(Decimal(current_tick), _tick_offset(min_dec))
        tick_lower = _snap(desired, spacing, ROUND_FLOOR)

    if max_dec is None:
        tick_upper = ceil_tick
    elif max_dec <= -100:
        raise ValueError(f"max_percent must be above -100, got {max_percent}")
    else:
        desired = _CTX.add(Decimal(current_tick), _tick_offset(max_dec))
        tick_upper = _snap(desired, spacing, ROUND_CEILING)

    tick_lower = min(max(tick_lower, floor_tick), ceil_tick)
    tick_upper = min(max(tick_upper, floor_tick), ceil_tick)

    if tick_lower >= tick_upper:
        if tick_lower + spacing <= ceil_tick:
            tick_upper = tick_lower + spacing
        else:
            tick_lower, tick_upper = ceil_tick - spacing, ceil_tick
    return tick_lower, tick_upper
