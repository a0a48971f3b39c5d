from __future__ import annotations

import asyncio
from typing import Any

from eth_utils import to_checksum_address
from web3 import AsyncWeb3

from clamm_paths.core.adapters.BaseAdapter import BaseAdapter, Web3Factory
from clamm_paths.core.adapters.models import (
    Pool,
    PoolFeeGrowth,
    Position,
    PositionValuation,
    TickFeeGrowth,
    Token,
)
from clamm_paths.core.constants.uniswap_v3_abi import (
    ERC20_METADATA_ABI,
    UNISWAP_V3_POOL_ABI,
)
from clamm_paths.core.utils import liquidity_math


class TokenMetadataCache:
    """Token metadata keyed by checksummed address.

    Owned by the caller and handed to the adapters that need it; entries live as long
    as the cache object does.
    """

    def __init__(self, tokens: list[Token] | None = None):
        self._tokens: dict[str, Token] = {}
        for token in tokens or []:
            self.put(token)

    def get(self, address: str) -> Token | None:
        return self._tokens.get(to_checksum_address(address))

    def put(self, token: Token) -> None:
        self._tokens[token.address] = token

    def clear(self) -> None:
        self._tokens.clear()

    def __contains__(self, address: object) -> bool:
        return isinstance(address, str) and self.get(address) is not None

    def __len__(self) -> int:
        return len(self._tokens)


class PoolStateAdapter(BaseAdapter):
    adapter_type = "POOL_STATE"

    def __init__(
        self,
        config: dict[str, Any] | None = None,
        *,
        token_cache: TokenMetadataCache,
        web3_factory: Web3Factory | None = None,
    ):
        super().__init__("pool_state_adapter", config, web3_factory=web3_factory)
        self.token_cache = token_cache

    async def get_token(self, token_address: str) -> tuple[bool, Token | str]:
        try:
            cached = self.token_cache.get(token_address)
            if cached is not None:
                return True, cached
            async with self.web3() as web3:
                token = await self._read_token(web3, token_address)
            return True, token
        except Exception as exc:  # noqa: BLE001
            self.logger.error(f"Error reading token {token_address}: {exc}")
            return False, str(exc)

    async def get_pool(self, pool_address: str) -> tuple[bool, Pool | str]:
        try:
            address = to_checksum_address(pool_address)
            async with self.web3() as web3:
                pool = web3.eth.contract(address=address, abi=UNISWAP_V3_POOL_ABI)
                slot0, fee, token0_addr, token1_addr = await asyncio.gather(
                    pool.functions.slot0().call(),
                    pool.functions.fee().call(),
                    pool.functions.token0().call(),
                    pool.functions.token1().call(),
                )
                token0, token1 = await asyncio.gather(
                    self._read_token(web3, token0_addr),
                    self._read_token(web3, token1_addr),
                )
            return True, Pool(
                address=address,
                token0=token0,
                token1=token1,
                fee_tier=int(fee),
                sqrt_price_x96=int(slot0[0]),
                tick=int(slot0[1]),
            )
        except Exception as exc:  # noqa: BLE001
            self.logger.error(f"Error reading pool {pool_address}: {exc}")
            return False, str(exc)

    async def get_fee_growth(self, pool_address: str) -> tuple[bool, PoolFeeGrowth | str]:
        try:
            async with self.web3() as web3:
                pool = self._pool_contract(web3, pool_address)
                growth0, growth1 = await asyncio.gather(
                    pool.functions.feeGrowthGlobal0X128().call(),
                    pool.functions.feeGrowthGlobal1X128().call(),
                )
            return True, PoolFeeGrowth(
                fee_growth_global0_x128=int(growth0),
                fee_growth_global1_x128=int(growth1),
            )
        except Exception as exc:  # noqa: BLE001
            self.logger.error(f"Error reading fee growth for {pool_address}: {exc}")
            return False, str(exc)

    async def get_tick_fee_growth(
        self, pool_address: str, tick: int
    ) -> tuple[bool, TickFeeGrowth | str]:
        try:
            async with self.web3() as web3:
                pool = self._pool_contract(web3, pool_address)
                raw = await pool.functions.ticks(int(tick)).call()
            return True, _tick_fee_growth(raw)
        except Exception as exc:  # noqa: BLE001
            self.logger.error(f"Error reading tick {tick} of {pool_address}: {exc}")
            return False, str(exc)

    async def value_position(
        self, pool_address: str, position: Position
    ) -> tuple[bool, PositionValuation | str]:
        """Token amounts plus uncollected fees of ``position`` at the current pool state."""
        try:
            async with self.web3() as web3:
                pool = self._pool_contract(web3, pool_address)
                slot0, growth0, growth1, lower_raw, upper_raw = await asyncio.gather(
                    pool.functions.slot0().call(),
                    pool.functions.feeGrowthGlobal0X128().call(),
                    pool.functions.feeGrowthGlobal1X128().call(),
                    pool.functions.ticks(position.tick_lower).call(),
                    pool.functions.ticks(position.tick_upper).call(),
                )
            valuation = liquidity_math.value_position(
                position,
                pool_tick=int(slot0[1]),
                pool_sqrt_price_x96=int(slot0[0]),
                fee_growth_global0_x128=int(growth0),
                fee_growth_global1_x128=int(growth1),
                lower=_tick_fee_growth(lower_raw),
                upper=_tick_fee_growth(upper_raw),
            )
            return True, valuation
        except Exception as exc:  # noqa: BLE001
            self.logger.error(f"Error valuing position in {pool_address}: {exc}")
            return False, str(exc)

    def _pool_contract(self, web3: AsyncWeb3, pool_address: str):
        return web3.eth.contract(
            address=to_checksum_address(pool_address), abi=UNISWAP_V3_POOL_ABI
        )

    async def _read_token(self, web3: AsyncWeb3, token_address: str) -> Token:
        cached = self.token_cache.get(token_address)
        if cached is not None:
            return cached
        address = to_checksum_address(token_address)
        erc20 = web3.eth.contract(address=address, abi=ERC20_METADATA_ABI)
        decimals, symbol, name = await asyncio.gather(
            erc20.functions.decimals().call(),
            erc20.functions.symbol().call(),
            erc20.functions.name().call(),
        )
        token = Token(
            address=address, decimals=int(decimals), symbol=str(symbol), name=str(name)
        )
        self.token_cache.put(token)
        return token


def _tick_fee_growth(raw: Any) -> TickFeeGrowth:
    # ticks(): liquidityGross, liquidityNet, feeGrowthOutside0X128, feeGrowthOutside1X128, ...
    return TickFeeGrowth(
        fee_growth_outside0_x128=int(raw[2]),
        fee_growth_outside1_x128=int(raw[3]),
    )
