from clamm_paths.core.constants.base import (
    MAX_TICK,
    MAX_UINT128,
    MAX_UINT256,
    MIN_TICK,
    Q96,
    Q128,
    ZERO_ADDRESS,
)

__all__ = [
    "MAX_TICK",
    "MAX_UINT128",
    "MAX_UINT256",
    "MIN_TICK",
    "Q96",
    "Q128",
    "ZERO_ADDRESS",
]
