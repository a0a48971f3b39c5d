from __future__ import annotations

import asyncio
from collections.abc import Callable
from decimal import Decimal

from loguru import logger

from clamm_paths.core.adapters.models import QuoteKind, Token
from clamm_paths.core.config import get_engine_settings
from clamm_paths.routing.aggregator import QuoteAggregator
from clamm_paths.routing.types import (
    PathDirectory,
    QuotationState,
    QuoteFailed,
    QuoteResult,
)

ResultCallback = Callable[[QuoteResult], None]


class QuotationPipeline:
    """Debounced, cancel-on-supersede quotation requests.

    Every ``submit`` takes a new generation number. A result is published only if no
    newer request arrived while it was debouncing or fetching; otherwise it is dropped
    and ``submit`` returns ``None``.
    """

    def __init__(
        self,
        aggregator: QuoteAggregator,
        directory: PathDirectory,
        *,
        debounce_s: float | None = None,
    ):
        self.aggregator = aggregator
        self.directory = directory
        self.debounce_s = (
            get_engine_settings().debounce_s if debounce_s is None else float(debounce_s)
        )
        if self.debounce_s < 0:
            raise ValueError(f"debounce_s must be non-negative, got {self.debounce_s}")

        self.state = QuotationState.IDLE
        self.result: QuoteResult | None = None
        self._generation = 0
        self._debounce: asyncio.Future | None = None
        self._subscribers: list[ResultCallback] = []
        self.logger = logger.bind(component=self.__class__.__name__)

    @property
    def generation(self) -> int:
        return self._generation

    def subscribe(self, callback: ResultCallback) -> Callable[[], None]:
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def is_current(self, generation: int) -> bool:
        return generation == self._generation

    def reset(self) -> None:
        self._generation += 1
        self._cancel_debounce()
        self.state = QuotationState.IDLE
        self.result = None

    async def submit(
        self,
        token_in: Token,
        token_out: Token,
        amount: str | Decimal | int | float | None,
        kind: QuoteKind | str,
    ) -> QuoteResult | None:
        self._generation += 1
        generation = self._generation
        self._cancel_debounce()

        delay = (
            0.0
            if self.aggregator.is_wrap_pair(token_in.address, token_out.address)
            else self.debounce_s
        )
        if delay > 0:
            self._debounce = asyncio.ensure_future(asyncio.sleep(delay))
            try:
                await self._debounce
            except asyncio.CancelledError:
                if self.is_current(generation):
                    raise
                self.logger.debug(f"Request {generation} superseded while debouncing")
                return None

        if not self.is_current(generation):
            self.logger.debug(f"Request {generation} superseded before fetching")
            return None

        self.state = QuotationState.FETCHING
        try:
            result = await self.aggregator.quote_route(
                token_in, token_out, amount, kind, self.directory
            )
        except Exception as exc:  # noqa: BLE001
            self.logger.error(f"Quotation request {generation} failed: {exc}")
            result = QuoteFailed(error=str(exc))

        if not self.is_current(generation):
            self.logger.debug(
                f"Discarding stale result of request {generation} "
                f"(current is {self._generation})"
            )
            return None

        self._publish(result)
        return result

    def _cancel_debounce(self) -> None:
        if self._debounce is not None and not self._debounce.done():
            self._debounce.cancel()
        self._debounce = None

    def _publish(self, result: QuoteResult) -> None:
        self.result = result
        self.state = result.state
        for callback in list(self._subscribers):
            callback(result)
