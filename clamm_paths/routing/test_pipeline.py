from __future__ import annotations

import asyncio

import pytest

from clamm_paths.core.adapters.models import Hop, QuoteKind, Token
from clamm_paths.core.constants.base import NATIVE_PLACEHOLDER_ADDRESS, Q96
from clamm_paths.routing.aggregator import QuoteAggregator
from clamm_paths.routing.pipeline import QuotationPipeline
from clamm_paths.routing.types import (
    EmptyReason,
    QuotationState,
    QuoteEmpty,
    QuoteFailed,
    QuoteSuccess,
    SingleHopQuote,
)

USDC = Token(address="0xA0b86991c6218b36c1d19D4a2e9Eb0cE3606eB48", decimals=6, symbol="USDC")
WETH = Token(address="0xC02aaA39b223FE8D0A0e5C4F27eAD9083C756Cc2", decimals=18, symbol="WETH")
ETH = Token(address=NATIVE_PLACEHOLDER_ADDRESS, decimals=18, symbol="ETH")
POOL = "0x8ad599c3A0ff1De082011EFDDc58f1908eb6e6D8"


class _Directory:
    def __init__(self, error: Exception | None = None):
        self.error = error
        self.calls = 0

    async def candidate_paths(self, token_in, token_out):
        self.calls += 1
        if self.error is not None:
            raise self.error
        return [
            [
                Hop(
                    token_in=token_in,
                    token_out=token_out,
                    fee_tier=500,
                    pool_address=POOL,
                    sqrt_price_before=Q96,
                )
            ]
        ]


class _GatedQuoter:
    """Echoes the input amount; blocks calls for ``blocked_amount`` until released."""

    def __init__(self, blocked_amount: int | None = None):
        self.blocked_amount = blocked_amount
        self.entered = asyncio.Event()
        self.release = asyncio.Event()
        self.amounts: list[int] = []

    async def quote_exact_input_single(self, token_in, token_out, fee_tier, amount_in):
        self.amounts.append(amount_in)
        if amount_in == self.blocked_amount:
            self.entered.set()
            await self.release.wait()
        return SingleHopQuote(amount=amount_in * 2, sqrt_price_after=Q96)


def _pipeline(quoter, directory=None, debounce_s=0.0) -> QuotationPipeline:
    aggregator = QuoteAggregator(
        quoter, native_token_address=ETH.address, wrapped_native_address=WETH.address
    )
    return QuotationPipeline(aggregator, directory or _Directory(), debounce_s=debounce_s)


@pytest.mark.asyncio
async def test_publishes_result_and_state():
    pipeline = _pipeline(_GatedQuoter())
    published = []
    pipeline.subscribe(published.append)
    assert pipeline.state is QuotationState.IDLE

    result = await pipeline.submit(USDC, WETH, "1", QuoteKind.EXACT_INPUT)

    assert isinstance(result, QuoteSuccess)
    assert result.quotation.amount_out == 2_000_000
    assert pipeline.state is QuotationState.SUCCESS
    assert pipeline.result is result
    assert published == [result]


@pytest.mark.asyncio
async def test_stale_result_is_discarded():
    quoter = _GatedQuoter(blocked_amount=1_000_000)
    pipeline = _pipeline(quoter)
    published = []
    pipeline.subscribe(published.append)

    first = asyncio.create_task(pipeline.submit(USDC, WETH, "1", QuoteKind.EXACT_INPUT))
    await asyncio.wait_for(quoter.entered.wait(), timeout=1)

    second = await pipeline.submit(USDC, WETH, "2", QuoteKind.EXACT_INPUT)
    quoter.release.set()
    stale = await first

    assert stale is None
    assert isinstance(second, QuoteSuccess)
    assert pipeline.result is second
    assert published == [second]


@pytest.mark.asyncio
async def test_superseded_debounce_never_quotes():
    quoter = _GatedQuoter()
    pipeline = _pipeline(quoter, debounce_s=0.05)

    first = asyncio.create_task(pipeline.submit(USDC, WETH, "1", QuoteKind.EXACT_INPUT))
    await asyncio.sleep(0)
    second = await pipeline.submit(USDC, WETH, "2", QuoteKind.EXACT_INPUT)

    assert await first is None
    assert isinstance(second, QuoteSuccess)
    assert quoter.amounts == [2_000_000]
    assert pipeline.generation == 2


@pytest.mark.asyncio
async def test_wrap_pair_skips_debounce():
    pipeline = _pipeline(_GatedQuoter(), debounce_s=30)
    result = await asyncio.wait_for(
        pipeline.submit(ETH, WETH, "1", QuoteKind.EXACT_INPUT), timeout=1
    )
    assert isinstance(result, QuoteSuccess)
    assert result.quotation.amount_out == 10**18


@pytest.mark.asyncio
async def test_empty_input_publishes_empty():
    directory = _Directory()
    pipeline = _pipeline(_GatedQuoter(), directory)
    result = await pipeline.submit(USDC, WETH, "", QuoteKind.EXACT_INPUT)
    assert result == QuoteEmpty(reason=EmptyReason.INVALID_AMOUNT)
    assert pipeline.state is QuotationState.EMPTY
    assert directory.calls == 0


@pytest.mark.asyncio
async def test_unexpected_error_becomes_failed():
    pipeline = _pipeline(_GatedQuoter(), _Directory(error=RuntimeError("indexer down")))
    result = await pipeline.submit(USDC, WETH, "1", QuoteKind.EXACT_INPUT)
    assert result == QuoteFailed(error="indexer down")
    assert pipeline.state is QuotationState.FAILED


@pytest.mark.asyncio
async def test_unsubscribe_and_reset():
    pipeline = _pipeline(_GatedQuoter())
    published = []
    unsubscribe = pipeline.subscribe(published.append)
    await pipeline.submit(USDC, WETH, "1", QuoteKind.EXACT_INPUT)
    unsubscribe()
    await pipeline.submit(USDC, WETH, "2", QuoteKind.EXACT_INPUT)
    assert len(published) == 1

    pipeline.reset()
    assert pipeline.state is QuotationState.IDLE
    assert pipeline.result is None


def test_negative_debounce_rejected():
    with pytest.raises(ValueError):
        _pipeline(_GatedQuoter(), debounce_s=-1)
