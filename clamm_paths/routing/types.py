from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import Protocol

from clamm_paths.core.adapters.models import Hop, Quotation, QuotePath


class QuotationState(StrEnum):
    IDLE = "idle"
    FETCHING = "fetching"
    SUCCESS = "success"
    EMPTY = "empty"
    FAILED = "failed"


class EmptyReason(StrEnum):
    INVALID_AMOUNT = "invalid_amount"
    NO_CANDIDATE_PATHS = "no_candidate_paths"
    ALL_QUOTES_FAILED = "all_quotes_failed"

    @property
    def message(self) -> str:
        return _EMPTY_MESSAGES[self]


_EMPTY_MESSAGES: dict[EmptyReason, str] = {
    EmptyReason.INVALID_AMOUNT: "Enter an amount",
    EmptyReason.NO_CANDIDATE_PATHS: "No pool found",
    EmptyReason.ALL_QUOTES_FAILED: "No price available",
}


@dataclass(frozen=True)
class SingleHopQuote:
    amount: int
    sqrt_price_after: int
    initialized_ticks_crossed: int = 0
    gas_estimate: int = 0


@dataclass(frozen=True)
class MultiHopQuote:
    amount: int
    # in the order the quoter walked the encoded path
    sqrt_price_after_list: list[int]
    initialized_ticks_crossed_list: list[int] = field(default_factory=list)
    gas_estimate: int = 0


class Quoter(Protocol):
    async def quote_exact_input_single(
        self, token_in: str, token_out: str, fee_tier: int, amount_in: int
    ) -> SingleHopQuote: ...

    async def quote_exact_output_single(
        self, token_in: str, token_out: str, fee_tier: int, amount_out: int
    ) -> SingleHopQuote: ...

    async def quote_exact_input(self, path: bytes, amount_in: int) -> MultiHopQuote: ...

    async def quote_exact_output(
        self, path: bytes, amount_out: int
    ) -> MultiHopQuote: ...


class PathDirectory(Protocol):
    async def candidate_paths(
        self, token_in: str, token_out: str
    ) -> list[QuotePath]: ...


@dataclass(frozen=True)
class PathQuoteOk:
    path: list[Hop]
    amount_in: int
    amount_out: int
    gas_estimate: int = 0


@dataclass(frozen=True)
class PathQuoteErr:
    path: list[Hop]
    reason: str


PathQuote = PathQuoteOk | PathQuoteErr


@dataclass(frozen=True)
class QuoteSuccess:
    quotation: Quotation
    state: QuotationState = QuotationState.SUCCESS


@dataclass(frozen=True)
class QuoteEmpty:
    reason: EmptyReason
    state: QuotationState = QuotationState.EMPTY

    @property
    def message(self) -> str:
        return self.reason.message


@dataclass(frozen=True)
class QuoteFailed:
    error: str
    state: QuotationState = QuotationState.FAILED


QuoteResult = QuoteSuccess | QuoteEmpty | QuoteFailed
