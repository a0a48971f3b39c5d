"""Price impact and slippage policy.

Impact numbers are informational: bad price state degrades to 0 instead of raising.
Minimum-received / maximum-sent bounds go into swap calldata, so they validate their
inputs and raise ``SlippageError``.
"""

from __future__ import annotations

import math
from collections.abc import Iterable
from fractions import Fraction

from clamm_paths.core.adapters.models import (
    ExactInputQuotation,
    ExactOutputQuotation,
    Hop,
    MaximumSent,
    MinimumReceived,
    Quotation,
)
from clamm_paths.core.config import EngineSettings
from clamm_paths.core.constants.base import (
    AUTO_MAX_SLIPPAGE_PERCENT,
    DEFAULT_MULTI_HOP_SLIPPAGE_AUTO_FALLBACK,
    DEFAULT_SWAP_SLIPPAGE_AUTO_FALLBACK,
    MANUAL_MAX_SLIPPAGE_PERCENT,
    MIN_SLIPPAGE_PERCENT,
    Q96,
)
from clamm_paths.core.errors import SlippageError

MAX_PRICE_IMPACT_PERCENT = 100.0

# auto slippage = impact * factor + buffer, never below the floor
AUTO_SLIPPAGE_IMPACT_FACTOR = 1.3
AUTO_SLIPPAGE_BUFFER = 0.1
AUTO_SLIPPAGE_FLOOR = 0.1


def _price(sqrt_price_x96: int) -> float:
    return (sqrt_price_x96 / Q96) ** 2


def _is_sqrt_price(value: object) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def hop_price_impact(sqrt_price_before: int | None, sqrt_price_after: int | None) -> float:
    """Relative pool price move across one hop, in percent."""
    if not _is_sqrt_price(sqrt_price_before) or not _is_sqrt_price(sqrt_price_after):
        return 0.0
    if sqrt_price_before <= 0 or sqrt_price_after < 0:
        return 0.0
    try:
        before = _price(sqrt_price_before)
        after = _price(sqrt_price_after)
        impact = abs(after - before) / before * 100
    except (OverflowError, ZeroDivisionError):
        return 0.0
    if not math.isfinite(impact):
        return 0.0
    return impact


def path_price_impact(path: Iterable[Hop]) -> float:
    """Sum of hop impacts, capped at 100.

    Summed rather than compounded; for the small impacts that are quotable at all the
    difference is negligible.
    """
    total = sum(
        hop_price_impact(hop.sqrt_price_before, hop.sqrt_price_after) for hop in path
    )
    return min(total, MAX_PRICE_IMPACT_PERCENT)


def auto_slippage(quotation: Quotation) -> float:
    impact = quotation.price_impact_percent
    if not math.isfinite(impact) or impact <= 0:
        if len(quotation.path) > 1:
            return DEFAULT_MULTI_HOP_SLIPPAGE_AUTO_FALLBACK
        return DEFAULT_SWAP_SLIPPAGE_AUTO_FALLBACK

    suggested = impact * AUTO_SLIPPAGE_IMPACT_FACTOR + AUTO_SLIPPAGE_BUFFER
    suggested = max(suggested, AUTO_SLIPPAGE_FLOOR)
    return round(min(suggested, AUTO_MAX_SLIPPAGE_PERCENT), 2)


def clamp_slippage(
    value: float | None,
    min_percent: float = MIN_SLIPPAGE_PERCENT,
    max_percent: float = AUTO_MAX_SLIPPAGE_PERCENT,
) -> float:
    if value is None or not math.isfinite(value):
        return min_percent
    return min(max(float(value), min_percent), max_percent)


def max_slippage_for_mode(auto: bool, settings: EngineSettings | None = None) -> float:
    settings = settings or EngineSettings()
    if auto:
        return settings.auto_max_slippage_percent
    return settings.manual_max_slippage_percent


def resolve_slippage(
    user_value: float | None,
    quotation: Quotation | None = None,
    *,
    settings: EngineSettings | None = None,
) -> float:
    """Effective slippage percent for a swap.

    An explicit user value is clamped to the manual ceiling; otherwise the auto
    suggestion for ``quotation`` (or the configured fallback when there is no
    quotation yet) is clamped to the auto ceiling.
    """
    settings = settings or EngineSettings()
    if user_value is not None:
        return clamp_slippage(
            user_value,
            settings.min_slippage_percent,
            max_slippage_for_mode(False, settings),
        )
    suggested = (
        auto_slippage(quotation)
        if quotation is not None
        else settings.auto_slippage_fallback
    )
    return clamp_slippage(
        suggested,
        settings.min_slippage_percent,
        max_slippage_for_mode(True, settings),
    )


def _slippage_fraction(slippage_percent: float) -> Fraction:
    if slippage_percent is None or not math.isfinite(slippage_percent):
        raise SlippageError(f"slippage must be a finite number, got {slippage_percent}")
    if slippage_percent < 0 or slippage_percent > 100:
        raise SlippageError(f"slippage must be within [0, 100], got {slippage_percent}")
    # str() keeps 0.1 as 1/10 rather than its binary expansion
    return Fraction(str(slippage_percent))


def _check_amount(amount: int, what: str) -> int:
    if isinstance(amount, bool) or not isinstance(amount, int):
        raise SlippageError(f"{what} must be an integer amount, got {amount!r}")
    if amount < 0:
        raise SlippageError(f"{what} must be non-negative, got {amount}")
    return amount


def slippage_percent_to_bps(slippage_percent: float) -> int:
    if slippage_percent is None or not math.isfinite(slippage_percent):
        raise SlippageError(f"slippage must be a finite number, got {slippage_percent}")
    bps = round(slippage_percent * 100)
    return min(max(bps, 0), 10_000)


def apply_slippage_to_amount(amount: int, slippage_percent: float) -> int:
    """``amount`` reduced by the slippage, at basis-point resolution."""
    _check_amount(amount, "amount")
    bps = slippage_percent_to_bps(slippage_percent)
    return amount * (10_000 - bps) // 10_000


def minimum_received(amount_out: int, slippage_percent: float) -> int:
    _check_amount(amount_out, "amount_out")
    s = _slippage_fraction(slippage_percent)
    return math.floor(amount_out * (100 - s) / 100)


def maximum_sent(amount_in: int, slippage_percent: float) -> int:
    _check_amount(amount_in, "amount_in")
    s = _slippage_fraction(slippage_percent)
    return math.ceil(amount_in * (100 + s) / 100)


def slippage_bounds(
    quotation: Quotation, slippage_percent: float
) -> MinimumReceived | MaximumSent:
    """Bound to pass to the swap: floor on output or ceiling on input."""
    match quotation:
        case ExactInputQuotation():
            return MinimumReceived(
                slippage_percent=slippage_percent,
                minimum_received=minimum_received(
                    quotation.amount_out, slippage_percent
                ),
            )
        case ExactOutputQuotation():
            return MaximumSent(
                slippage_percent=slippage_percent,
                maximum_sent=maximum_sent(quotation.amount_in, slippage_percent),
            )
        case _:
            raise TypeError(f"Unsupported quotation type: {type(quotation).__name__}")
