from contextlib import asynccontextmanager

from web3 import AsyncHTTPProvider, AsyncWeb3

from clamm_paths.core.config import get_rpc_url


def get_web3(rpc_url: str) -> AsyncWeb3:
    return AsyncWeb3(AsyncHTTPProvider(rpc_url))


@asynccontextmanager
async def web3_from_rpc_url(rpc_url: str | None = None):
    url = rpc_url or get_rpc_url()
    if not url:
        raise ValueError(
            "No RPC URL configured; set chain.rpc_url in config.json "
            "or CLAMM_PATHS_RPC_URL"
        )
    web3 = get_web3(url)
    try:
        yield web3
    finally:
        await web3.provider.disconnect()
