from __future__ import annotations

import asyncio
from collections.abc import Sequence
from decimal import Context, Decimal

from eth_utils import to_checksum_address
from loguru import logger

from clamm_paths.core.adapters.models import (
    ExactInputQuotation,
    ExactOutputQuotation,
    Hop,
    Quotation,
    QuoteKind,
    QuotePath,
    Token,
)
from clamm_paths.core.config import get_native_token_address, get_wrapped_native_address
from clamm_paths.core.constants.base import Q96, ZERO_ADDRESS
from clamm_paths.core.errors import InvalidPathError, QuoteCallError
from clamm_paths.core.utils.path_encoding import (
    encode_path,
    encode_reverse_path,
    validate_path,
)
from clamm_paths.core.utils.price_impact import path_price_impact
from clamm_paths.core.utils.units import from_raw_amount, try_parse_positive_raw
from clamm_paths.routing.types import (
    EmptyReason,
    PathDirectory,
    PathQuote,
    PathQuoteErr,
    PathQuoteOk,
    Quoter,
    QuoteEmpty,
    QuoteResult,
    QuoteSuccess,
)

_CTX = Context(prec=60)


def price_per_token(
    amount_in: int, amount_out: int, decimals_in: int, decimals_out: int
) -> Decimal | None:
    """Human units of the input token paid per unit of the output token."""
    if amount_out <= 0:
        return None
    return _CTX.divide(
        from_raw_amount(amount_in, decimals_in), from_raw_amount(amount_out, decimals_out)
    )


def select_best(outcomes: Sequence[PathQuote], kind: QuoteKind) -> PathQuoteOk | None:
    """Most output for exact-input, least input for exact-output; first seen wins ties."""
    best: PathQuoteOk | None = None
    for outcome in outcomes:
        match outcome:
            case PathQuoteErr():
                continue
            case PathQuoteOk():
                if best is None:
                    best = outcome
                elif kind is QuoteKind.EXACT_INPUT and outcome.amount_out > best.amount_out:
                    best = outcome
                elif kind is QuoteKind.EXACT_OUTPUT and outcome.amount_in < best.amount_in:
                    best = outcome
    return best


class QuoteAggregator:
    """Quotes every candidate path concurrently and keeps the best one.

    Native-token legs are quoted as the wrapped token; a native <-> wrapped request is
    answered 1:1 without touching the quoter.
    """

    def __init__(
        self,
        quoter: Quoter,
        *,
        native_token_address: str | None = None,
        wrapped_native_address: str | None = None,
    ):
        self.quoter = quoter
        self.native_token_address = to_checksum_address(
            native_token_address or get_native_token_address()
        )
        wrapped = wrapped_native_address or get_wrapped_native_address()
        self.wrapped_native_address = to_checksum_address(wrapped) if wrapped else None
        self.logger = logger.bind(component=self.__class__.__name__)

    def is_wrap_pair(self, token_in: str, token_out: str) -> bool:
        if self.wrapped_native_address is None:
            return False
        pair = {to_checksum_address(token_in), to_checksum_address(token_out)}
        return pair == {self.native_token_address, self.wrapped_native_address}

    def quotable_address(self, address: str) -> str:
        addr = to_checksum_address(address)
        if addr == self.native_token_address and self.wrapped_native_address:
            return self.wrapped_native_address
        return addr

    def fixed_amount(
        self, token_in: Token, token_out: Token, amount: object, kind: QuoteKind | str
    ) -> int | None:
        fixed = token_in if QuoteKind(kind) is QuoteKind.EXACT_INPUT else token_out
        return try_parse_positive_raw(amount, fixed.decimals)

    async def quote(
        self,
        token_in: Token,
        token_out: Token,
        amount: str | Decimal | int | float | None,
        kind: QuoteKind | str,
        candidate_paths: Sequence[QuotePath],
    ) -> QuoteResult:
        kind = QuoteKind(kind)
        raw = self.fixed_amount(token_in, token_out, amount, kind)
        if raw is None:
            return QuoteEmpty(reason=EmptyReason.INVALID_AMOUNT)

        if self.is_wrap_pair(token_in.address, token_out.address):
            return QuoteSuccess(quotation=self._wrap_quotation(token_in, token_out, raw, kind))

        if not candidate_paths:
            self.logger.info(
                f"No candidate paths for {token_in.symbol or token_in.address} -> "
                f"{token_out.symbol or token_out.address}"
            )
            return QuoteEmpty(reason=EmptyReason.NO_CANDIDATE_PATHS)

        paths = [self._quotable_path(path) for path in candidate_paths]
        outcomes = await asyncio.gather(*(self.quote_path(p, raw, kind) for p in paths))

        best = select_best(outcomes, kind)
        if best is None:
            self.logger.info(
                f"All {len(outcomes)} candidate quotes failed for "
                f"{token_in.symbol or token_in.address} -> {token_out.symbol or token_out.address}"
            )
            return QuoteEmpty(reason=EmptyReason.ALL_QUOTES_FAILED)

        return QuoteSuccess(quotation=self._build_quotation(token_in, token_out, kind, best))

    async def quote_route(
        self,
        token_in: Token,
        token_out: Token,
        amount: str | Decimal | int | float | None,
        kind: QuoteKind | str,
        directory: PathDirectory,
    ) -> QuoteResult:
        """Like ``quote`` but asks ``directory`` for the candidate paths first."""
        if self.fixed_amount(
            token_in, token_out, amount, kind
        ) is None or self.is_wrap_pair(token_in.address, token_out.address):
            return await self.quote(token_in, token_out, amount, kind, [])

        paths = await directory.candidate_paths(
            self.quotable_address(token_in.address),
            self.quotable_address(token_out.address),
        )
        return await self.quote(token_in, token_out, amount, kind, paths)

    async def quote_path(self, path: QuotePath, amount: int, kind: QuoteKind) -> PathQuote:
        """Quote one path; any failure comes back as ``PathQuoteErr``."""
        try:
            validate_path(path)
            if len(path) == 1:
                return await self._quote_single(path, amount, kind)
            return await self._quote_multi(path, amount, kind)
        except Exception as exc:  # noqa: BLE001
            self.logger.warning(f"Quote failed for {_describe(path)}: {exc}")
            return PathQuoteErr(path=list(path), reason=str(exc))

    async def _quote_single(
        self, path: QuotePath, amount: int, kind: QuoteKind
    ) -> PathQuoteOk:
        hop = path[0]
        if hop.fee_tier is None:
            raise InvalidPathError(f"hop {hop.token_in} -> {hop.token_out} has no fee tier")

        if kind is QuoteKind.EXACT_INPUT:
            q = await self.quoter.quote_exact_input_single(
                hop.token_in, hop.token_out, hop.fee_tier, amount
            )
            amount_in, amount_out = amount, _quoted_amount(q.amount)
        else:
            q = await self.quoter.quote_exact_output_single(
                hop.token_in, hop.token_out, hop.fee_tier, amount
            )
            amount_in, amount_out = _quoted_amount(q.amount), amount

        return PathQuoteOk(
            path=_with_after_prices(path, [q.sqrt_price_after]),
            amount_in=amount_in,
            amount_out=amount_out,
            gas_estimate=int(q.gas_estimate),
        )

    async def _quote_multi(
        self, path: QuotePath, amount: int, kind: QuoteKind
    ) -> PathQuoteOk:
        if kind is QuoteKind.EXACT_INPUT:
            q = await self.quoter.quote_exact_input(encode_path(path), amount)
            after_prices = list(q.sqrt_price_after_list)
            amount_in, amount_out = amount, _quoted_amount(q.amount)
        else:
            q = await self.quoter.quote_exact_output(encode_reverse_path(path), amount)
            # the quoter walked the path output-first
            after_prices = list(reversed(q.sqrt_price_after_list))
            amount_in, amount_out = _quoted_amount(q.amount), amount

        return PathQuoteOk(
            path=_with_after_prices(path, after_prices),
            amount_in=amount_in,
            amount_out=amount_out,
            gas_estimate=int(q.gas_estimate),
        )

    def _quotable_path(self, path: QuotePath) -> list[Hop]:
        return [
            hop.model_copy(
                update={
                    "token_in": self.quotable_address(hop.token_in),
                    "token_out": self.quotable_address(hop.token_out),
                }
            )
            for hop in path
        ]

    def _wrap_quotation(
        self, token_in: Token, token_out: Token, amount: int, kind: QuoteKind
    ) -> Quotation:
        hop = Hop(
            token_in=token_in.address,
            token_out=token_out.address,
            fee_tier=None,
            pool_address=ZERO_ADDRESS,
            sqrt_price_before=Q96,
            sqrt_price_after=Q96,
        )
        if kind is QuoteKind.EXACT_INPUT:
            amount_in = amount
            amount_out = _rescale(amount, token_in.decimals, token_out.decimals)
        else:
            amount_out = amount
            amount_in = _rescale(amount, token_out.decimals, token_in.decimals)
        ok = PathQuoteOk(path=[hop], amount_in=amount_in, amount_out=amount_out)
        return self._build_quotation(token_in, token_out, kind, ok)

    def _build_quotation(
        self, token_in: Token, token_out: Token, kind: QuoteKind, best: PathQuoteOk
    ) -> Quotation:
        fields = {
            "token_in": token_in,
            "token_out": token_out,
            "amount_in": best.amount_in,
            "amount_out": best.amount_out,
            "price_per_token": price_per_token(
                best.amount_in, best.amount_out, token_in.decimals, token_out.decimals
            ),
            "price_impact_percent": path_price_impact(best.path),
            "path": best.path,
            "gas_estimate": best.gas_estimate,
        }
        match kind:
            case QuoteKind.EXACT_INPUT:
                return ExactInputQuotation(**fields)
            case QuoteKind.EXACT_OUTPUT:
                return ExactOutputQuotation(**fields)


def _quoted_amount(value: int) -> int:
    amount = int(value)
    if amount < 0:
        raise QuoteCallError("quote", f"quoter returned negative amount {amount}")
    return amount


def _with_after_prices(path: QuotePath, after_prices: list[int]) -> list[Hop]:
    if len(after_prices) != len(path):
        raise QuoteCallError(
            "quote", f"got {len(after_prices)} after-prices for {len(path)} hops"
        )
    if any(int(after) < 0 for after in after_prices):
        raise QuoteCallError("quote", f"quoter returned negative sqrt price {after_prices}")
    return [
        hop.model_copy(update={"sqrt_price_after": int(after)})
        for hop, after in zip(path, after_prices)
    ]


def _rescale(amount: int, from_decimals: int, to_decimals: int) -> int:
    if to_decimals >= from_decimals:
        return amount * 10 ** (to_decimals - from_decimals)
    return amount // 10 ** (from_decimals - to_decimals)


def _describe(path: QuotePath) -> str:
    if not path:
        return "<empty path>"
    parts = [path[0].token_in]
    for hop in path:
        parts.append(f"--{hop.fee_tier}--> {hop.token_out}")
    return " ".join(parts)
