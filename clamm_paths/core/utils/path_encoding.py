from __future__ import annotations

from collections.abc import Sequence

from eth_abi.packed import encode_packed
from eth_utils import to_checksum_address

from clamm_paths.core.adapters.models import Hop
from clamm_paths.core.constants.base import MAX_PATH_HOPS
from clamm_paths.core.errors import InvalidPathError


def validate_path(hops: Sequence[Hop], *, max_hops: int = MAX_PATH_HOPS) -> None:
    if not hops:
        raise InvalidPathError("path must contain at least one hop")
    if len(hops) > max_hops:
        raise InvalidPathError(f"path has {len(hops)} hops; at most {max_hops} supported")
    for i, (prev, nxt) in enumerate(zip(hops, hops[1:])):
        if to_checksum_address(prev.token_out) != to_checksum_address(nxt.token_in):
            raise InvalidPathError(
                f"hop {i} ends in {prev.token_out} but hop {i + 1} starts at {nxt.token_in}"
            )


def _encode(tokens: list[str], fees: list[int]) -> bytes:
    types: list[str] = ["address"]
    values: list[object] = [to_checksum_address(tokens[0])]
    for fee, token in zip(fees, tokens[1:]):
        types.extend(("uint24", "address"))
        values.extend((int(fee), to_checksum_address(token)))
    return encode_packed(types, values)


def _tokens_and_fees(hops: Sequence[Hop]) -> tuple[list[str], list[int]]:
    validate_path(hops)
    fees: list[int] = []
    for hop in hops:
        if hop.fee_tier is None:
            raise InvalidPathError(
                f"hop {hop.token_in} -> {hop.token_out} has no fee tier to encode"
            )
        fees.append(hop.fee_tier)
    tokens = [hops[0].token_in, *(hop.token_out for hop in hops)]
    return tokens, fees


def encode_path(hops: Sequence[Hop]) -> bytes:
    """QuoterV2 / SwapRouter path: ``tokenIn | fee | token | fee | tokenOut``."""
    tokens, fees = _tokens_and_fees(hops)
    return _encode(tokens, fees)


def encode_reverse_path(hops: Sequence[Hop]) -> bytes:
    """Path in output-to-input order, as exact-output quotes and swaps expect."""
    tokens, fees = _tokens_and_fees(hops)
    return _encode(tokens[::-1], fees[::-1])
