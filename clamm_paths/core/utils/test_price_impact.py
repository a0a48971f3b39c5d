from __future__ import annotations

import math

import pytest

from clamm_paths.core.adapters.models import (
    ExactInputQuotation,
    ExactOutputQuotation,
    Hop,
    MaximumSent,
    MinimumReceived,
    Token,
)
from clamm_paths.core.config import EngineSettings
from clamm_paths.core.constants.base import Q96
from clamm_paths.core.errors import SlippageError
from clamm_paths.core.utils.price_impact import (
    apply_slippage_to_amount,
    auto_slippage,
    clamp_slippage,
    hop_price_impact,
    max_slippage_for_mode,
    maximum_sent,
    minimum_received,
    path_price_impact,
    resolve_slippage,
    slippage_bounds,
    slippage_percent_to_bps,
)

USDC = Token(address="0xA0b86991c6218b36c1d19D4a2e9Eb0cE3606eB48", decimals=6, symbol="USDC")
WETH = Token(address="0xC02aaA39b223FE8D0A0e5C4F27eAD9083C756Cc2", decimals=18, symbol="WETH")
DAI = Token(address="0x6B175474E89094C44Da98b954EedeAC495271d0F", decimals=18, symbol="DAI")
POOL = "0x8ad599c3A0ff1De082011EFDDc58f1908eb6e6D8"


def _hop(before=Q96, after=Q96, token_in=USDC, token_out=WETH) -> Hop:
    return Hop(
        token_in=token_in.address,
        token_out=token_out.address,
        fee_tier=3000,
        pool_address=POOL,
        sqrt_price_before=before,
        sqrt_price_after=after,
    )


def _quotation(cls=ExactInputQuotation, *, impact=0.0, hops=1, amount_in=1000, amount_out=500):
    path = [_hop()] if hops == 1 else [_hop(token_out=DAI), _hop(token_in=DAI)]
    return cls(
        token_in=USDC,
        token_out=WETH,
        amount_in=amount_in,
        amount_out=amount_out,
        price_impact_percent=impact,
        path=path,
    )


class TestPriceImpact:
    def test_no_move_is_zero(self):
        assert hop_price_impact(Q96, Q96) == 0

    def test_price_up_and_down(self):
        assert hop_price_impact(Q96, 2 * Q96) == pytest.approx(300.0)
        assert hop_price_impact(2 * Q96, Q96) == pytest.approx(75.0)

    @pytest.mark.parametrize(
        "before,after",
        [
            (0, Q96),
            (-1, Q96),
            (None, Q96),
            (Q96, None),
            (Q96, -5),
            (float("nan"), Q96),
            (Q96, float("nan")),
            (Q96, float("inf")),
            ("abc", Q96),
            (Q96, "2"),
            (True, Q96),
        ],
    )
    def test_bad_price_state_degrades_to_zero(self, before, after):
        assert hop_price_impact(before, after) == 0.0

    def test_never_negative(self):
        for after in (1, Q96 // 3, Q96, 3 * Q96):
            assert hop_price_impact(Q96, after) >= 0

    def test_path_impact_sums_hops(self):
        small = Q96 * 1001 // 1000
        single = hop_price_impact(Q96, small)
        path = [_hop(after=small, token_out=DAI), _hop(after=small, token_in=DAI)]
        assert path_price_impact(path) == pytest.approx(2 * single)

    def test_path_impact_is_capped(self):
        path = [_hop(after=2 * Q96, token_out=DAI), _hop(after=2 * Q96, token_in=DAI)]
        assert path_price_impact(path) == 100

    def test_hops_without_after_price_count_as_zero(self):
        path = [_hop(after=None)]
        assert path_price_impact(path) == 0


class TestSlippagePolicy:
    def test_clamp_examples(self):
        assert clamp_slippage(-10, 0.05, 5) == 0.05
        assert clamp_slippage(1000, 0.05, 5) == 5
        assert clamp_slippage(1000, 0.05, 50) == 50
        assert clamp_slippage(1.25) == 1.25

    def test_clamp_non_finite(self):
        assert clamp_slippage(float("nan")) == 0.05
        assert clamp_slippage(float("inf")) == 0.05
        assert clamp_slippage(None) == 0.05

    def test_mode_ceilings(self):
        assert max_slippage_for_mode(True) == 5
        assert max_slippage_for_mode(False) == 50
        settings = EngineSettings(auto_max_slippage_percent=3)
        assert max_slippage_for_mode(True, settings) == 3

    def test_auto_slippage_follows_impact(self):
        assert auto_slippage(_quotation(impact=1.0)) == 1.4
        assert auto_slippage(_quotation(impact=0.001)) == 0.1
        assert auto_slippage(_quotation(impact=10.0)) == 5.0

    def test_auto_slippage_fallbacks(self):
        assert auto_slippage(_quotation(impact=0.0)) == 0.5
        assert auto_slippage(_quotation(impact=0.0, hops=2)) == 0.75
        assert auto_slippage(_quotation(impact=math.nan)) == 0.5

    def test_resolve_user_value_uses_manual_ceiling(self):
        assert resolve_slippage(80) == 50
        assert resolve_slippage(12) == 12
        assert resolve_slippage(-1) == 0.05

    def test_resolve_auto(self):
        assert resolve_slippage(None) == 0.5
        assert resolve_slippage(None, _quotation(impact=1.0)) == 1.4
        assert resolve_slippage(None, _quotation(impact=40.0)) == 5

    def test_resolve_respects_settings(self):
        settings = EngineSettings(auto_slippage_fallback=0.3, manual_max_slippage_percent=20)
        assert resolve_slippage(None, settings=settings) == 0.3
        assert resolve_slippage(45, settings=settings) == 20


class TestBounds:
    def test_minimum_received(self):
        assert minimum_received(1000, 1) == 990
        assert minimum_received(999, 0.5) == 994
        assert minimum_received(1000, 0) == 1000
        assert minimum_received(1000, 100) == 0

    def test_maximum_sent(self):
        assert maximum_sent(1000, 1) == 1010
        assert maximum_sent(999, 0.5) == 1004

    def test_exact_decimal_slippage(self):
        assert minimum_received(10**18, 0.1) == 999 * 10**15

    @pytest.mark.parametrize("slippage", [-0.1, 100.5, math.nan, math.inf])
    def test_bad_slippage_fails_loudly(self, slippage):
        with pytest.raises(SlippageError):
            minimum_received(1000, slippage)
        with pytest.raises(SlippageError):
            maximum_sent(1000, slippage)

    def test_bad_amount_fails_loudly(self):
        with pytest.raises(SlippageError):
            minimum_received(-1, 1)
        with pytest.raises(SlippageError):
            maximum_sent(1.5, 1)

    def test_bounds_exact_input(self):
        bounds = slippage_bounds(_quotation(amount_in=1000, amount_out=500), 1)
        assert isinstance(bounds, MinimumReceived)
        assert bounds.minimum_received == 495
        assert bounds.slippage_percent == 1

    def test_bounds_exact_output_caps_input(self):
        quotation = _quotation(ExactOutputQuotation, amount_in=1000, amount_out=500)
        bounds = slippage_bounds(quotation, 1)
        assert isinstance(bounds, MaximumSent)
        # derived from the quoted input, not the fixed output
        assert bounds.maximum_sent == 1010

    def test_bps_helpers(self):
        assert slippage_percent_to_bps(0.5) == 50
        assert slippage_percent_to_bps(200) == 10_000
        assert slippage_percent_to_bps(-1) == 0
        assert apply_slippage_to_amount(10_000, 0.5) == 9950
        with pytest.raises(SlippageError):
            slippage_percent_to_bps(math.nan)
