from clamm_paths.adapters.pool_state_adapter.adapter import (
    PoolStateAdapter,
    TokenMetadataCache,
)

__all__ = ["PoolStateAdapter", "TokenMetadataCache"]
