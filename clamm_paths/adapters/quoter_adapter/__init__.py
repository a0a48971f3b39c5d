from clamm_paths.adapters.quoter_adapter.adapter import QuoterV2Adapter

__all__ = ["QuoterV2Adapter"]
