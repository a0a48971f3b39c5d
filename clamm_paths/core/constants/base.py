ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"
NATIVE_PLACEHOLDER_ADDRESS = "0xEeeeeEeeeEeEeeEeEeEeeEEEeeeeEeeeeeeeEEeE"

Q96 = 1 << 96
Q128 = 1 << 128
Q192 = 1 << 192

MAX_UINT128 = 2**128 - 1
MAX_UINT256 = 2**256 - 1

# TickMath bounds
MIN_TICK = -887272
MAX_TICK = 887272
MIN_SQRT_RATIO = 4295128739
MAX_SQRT_RATIO = 1461446703485210103287273052203988822378723970342

TICK_BASE = "1.0001"

# fee tier (hundredths of a bip) -> tick spacing
TICK_SPACING: dict[int, int] = {100: 1, 500: 10, 3000: 60, 10000: 200}

# Slippage policy, in percent
MIN_SLIPPAGE_PERCENT = 0.05
AUTO_MAX_SLIPPAGE_PERCENT = 5.0
MANUAL_MAX_SLIPPAGE_PERCENT = 50.0
DEFAULT_SWAP_SLIPPAGE_AUTO_FALLBACK = 0.5
DEFAULT_MULTI_HOP_SLIPPAGE_AUTO_FALLBACK = 0.75

DEFAULT_QUOTE_DEBOUNCE_S = 0.5

# QuoterV2 eth_call gas limits; the fallback covers quoters that run out of gas
# on volatile data access in deep multi-hop simulations.
QUOTER_CALL_GAS = 30_000_000
QUOTER_CALL_GAS_FALLBACK = 50_000_000

MAX_PATH_HOPS = 2
