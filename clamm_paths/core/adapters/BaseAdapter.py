from __future__ import annotations

from abc import ABC
from collections.abc import Callable
from contextlib import AbstractAsyncContextManager
from typing import Any

from loguru import logger
from web3 import AsyncWeb3

from clamm_paths.core.utils.web3 import web3_from_rpc_url

Web3Factory = Callable[[], AbstractAsyncContextManager[AsyncWeb3]]


class BaseAdapter(ABC):
    """Read-only on-chain adapter.

    Subclasses open a web3 session per read through ``self.web3()``; tests inject
    ``web3_factory`` to hand back fake contracts instead of a live provider.
    """

    adapter_type: str | None = None

    def __init__(
        self,
        name: str,
        config: dict[str, Any] | None = None,
        *,
        web3_factory: Web3Factory | None = None,
    ):
        self.name = name
        self.config = config or {}
        self.logger = logger.bind(adapter=self.__class__.__name__)
        self._web3_factory = web3_factory

    def web3(self) -> AbstractAsyncContextManager[AsyncWeb3]:
        if self._web3_factory is not None:
            return self._web3_factory()
        return web3_from_rpc_url(self.config.get("rpc_url"))

    async def close(self) -> None:
        pass
