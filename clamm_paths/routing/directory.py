from __future__ import annotations

from collections.abc import Iterable

from eth_utils import to_checksum_address

from clamm_paths.core.adapters.models import Hop, Pool, QuotePath


def hop_through(pool: Pool, token_in: str) -> Hop:
    token_in = to_checksum_address(token_in)
    return Hop(
        token_in=token_in,
        token_out=pool.other(token_in).address,
        fee_tier=pool.fee_tier,
        pool_address=pool.address,
        sqrt_price_before=pool.sqrt_price_x96,
    )


class StaticPathDirectory:
    """Candidate paths over a fixed set of known pools.

    Direct pools win outright; two-hop routes are only offered when no direct pool
    exists. ``intermediate_tokens`` restricts which tokens may sit in the middle of a
    two-hop route (any shared token when omitted).
    """

    def __init__(
        self,
        pools: Iterable[Pool] = (),
        *,
        intermediate_tokens: Iterable[str] | None = None,
    ):
        self._pools: dict[str, Pool] = {}
        for pool in pools:
            self.upsert(pool)
        self.intermediate_tokens = (
            {to_checksum_address(t) for t in intermediate_tokens}
            if intermediate_tokens is not None
            else None
        )

    @property
    def pools(self) -> list[Pool]:
        return list(self._pools.values())

    def upsert(self, pool: Pool) -> None:
        """Add a pool or replace its state (same address keeps its position)."""
        self._pools[pool.address] = pool

    def pools_for(self, token: str) -> list[Pool]:
        return [p for p in self._pools.values() if p.has_token(token)]

    async def candidate_paths(self, token_in: str, token_out: str) -> list[QuotePath]:
        token_in = to_checksum_address(token_in)
        token_out = to_checksum_address(token_out)
        if token_in == token_out:
            return []

        direct = [
            [hop_through(pool, token_in)]
            for pool in self.pools_for(token_in)
            if pool.has_token(token_out)
        ]
        if direct:
            return direct

        paths: list[QuotePath] = []
        for first in self.pools_for(token_in):
            middle = first.other(token_in).address
            if middle == token_out:
                continue
            if self.intermediate_tokens is not None and middle not in self.intermediate_tokens:
                continue
            for second in self.pools_for(middle):
                if second.address == first.address or not second.has_token(token_out):
                    continue
                paths.append([hop_through(first, token_in), hop_through(second, middle)])
        return paths
