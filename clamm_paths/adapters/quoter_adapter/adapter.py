from __future__ import annotations

from typing import Any

from eth_utils import to_checksum_address

from clamm_paths.core.adapters.BaseAdapter import BaseAdapter, Web3Factory
from clamm_paths.core.config import get_engine_settings, get_quoter_address
from clamm_paths.core.constants.uniswap_v3_abi import QUOTER_V2_ABI
from clamm_paths.core.errors import QuoteCallError
from clamm_paths.routing.types import MultiHopQuote, SingleHopQuote

# no price limit: let the quote run to completion
NO_SQRT_PRICE_LIMIT = 0


class QuoterV2Adapter(BaseAdapter):
    """Read-only QuoterV2 calls.

    QuoterV2 quotes by simulating the swap and reverting with the result, so every
    method is an ``eth_call``. Deep multi-hop simulations can exhaust the default call
    gas; a failed call is retried once with the larger fallback limit before it is
    reported as ``QuoteCallError``.
    """

    adapter_type = "QUOTER_V2"

    def __init__(
        self,
        config: dict[str, Any] | None = None,
        *,
        web3_factory: Web3Factory | None = None,
    ):
        super().__init__("quoter_v2_adapter", config, web3_factory=web3_factory)
        settings = get_engine_settings()

        address = self.config.get("quoter_address") or get_quoter_address()
        if not address:
            raise ValueError(
                "quoter_address is required for QuoterV2Adapter "
                "(config or chain.quoter_address)"
            )
        self.quoter_address: str = to_checksum_address(str(address))
        self.gas_limits: tuple[int, ...] = (
            int(self.config.get("quoter_gas", settings.quoter_gas)),
            int(self.config.get("quoter_gas_fallback", settings.quoter_gas_fallback)),
        )

    async def quote_exact_input_single(
        self, token_in: str, token_out: str, fee_tier: int, amount_in: int
    ) -> SingleHopQuote:
        params = (
            to_checksum_address(token_in),
            to_checksum_address(token_out),
            int(amount_in),
            int(fee_tier),
            NO_SQRT_PRICE_LIMIT,
        )
        raw = await self._call("quoteExactInputSingle", params)
        return _single(raw)

    async def quote_exact_output_single(
        self, token_in: str, token_out: str, fee_tier: int, amount_out: int
    ) -> SingleHopQuote:
        params = (
            to_checksum_address(token_in),
            to_checksum_address(token_out),
            int(amount_out),
            int(fee_tier),
            NO_SQRT_PRICE_LIMIT,
        )
        raw = await self._call("quoteExactOutputSingle", params)
        return _single(raw)

    async def quote_exact_input(self, path: bytes, amount_in: int) -> MultiHopQuote:
        raw = await self._call("quoteExactInput", bytes(path), int(amount_in))
        return _multi(raw)

    async def quote_exact_output(self, path: bytes, amount_out: int) -> MultiHopQuote:
        """``path`` must already be encoded output-first."""
        raw = await self._call("quoteExactOutput", bytes(path), int(amount_out))
        return _multi(raw)

    async def _call(self, fn_name: str, *args: Any) -> Any:
        last_exc: Exception | None = None
        async with self.web3() as web3:
            quoter = web3.eth.contract(address=self.quoter_address, abi=QUOTER_V2_ABI)
            fn = getattr(quoter.functions, fn_name)
            for gas in self.gas_limits:
                try:
                    return await fn(*args).call({"gas": gas})
                except Exception as exc:  # noqa: BLE001
                    self.logger.debug(f"{fn_name} failed with gas={gas}: {exc}")
                    last_exc = exc
        raise QuoteCallError(fn_name, str(last_exc)) from last_exc


def _single(raw: Any) -> SingleHopQuote:
    amount, sqrt_after, ticks_crossed, gas_estimate = raw
    return SingleHopQuote(
        amount=int(amount),
        sqrt_price_after=int(sqrt_after),
        initialized_ticks_crossed=int(ticks_crossed),
        gas_estimate=int(gas_estimate),
    )


def _multi(raw: Any) -> MultiHopQuote:
    amount, sqrt_after_list, ticks_crossed_list, gas_estimate = raw
    return MultiHopQuote(
        amount=int(amount),
        sqrt_price_after_list=[int(x) for x in sqrt_after_list],
        initialized_ticks_crossed_list=[int(x) for x in ticks_crossed_list],
        gas_estimate=int(gas_estimate),
    )
