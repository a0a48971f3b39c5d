import json
import os
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field

from clamm_paths.core.constants.base import (
    AUTO_MAX_SLIPPAGE_PERCENT,
    DEFAULT_QUOTE_DEBOUNCE_S,
    DEFAULT_SWAP_SLIPPAGE_AUTO_FALLBACK,
    MANUAL_MAX_SLIPPAGE_PERCENT,
    MIN_SLIPPAGE_PERCENT,
    NATIVE_PLACEHOLDER_ADDRESS,
    QUOTER_CALL_GAS,
    QUOTER_CALL_GAS_FALLBACK,
)

_CONFIG_ENV_KEYS = ("CLAMM_PATHS_CONFIG_PATH", "CLAMM_PATHS_CONFIG")
_DEFAULT_CONFIG_FILENAME = "config.json"
_RPC_URL_ENV_KEY = "CLAMM_PATHS_RPC_URL"


def _find_project_root(start: Path) -> Path | None:
    cur = start.resolve()
    for parent in [cur, *cur.parents]:
        if (parent / "pyproject.toml").exists():
            return parent
    return None


def _project_root() -> Path | None:
    return _find_project_root(Path.cwd()) or _find_project_root(Path(__file__).parent)


def resolve_config_path(path: str | Path | None = None) -> Path:
    if path is not None:
        return Path(path).expanduser()

    env_path = next(
        (os.getenv(k, "").strip() for k in _CONFIG_ENV_KEYS if os.getenv(k)), ""
    )
    if env_path:
        p = Path(env_path).expanduser()
        if p.is_absolute():
            return p
        root = _project_root()
        return (root / p) if root else p

    root = _project_root()
    return (root / _DEFAULT_CONFIG_FILENAME) if root else Path(_DEFAULT_CONFIG_FILENAME)


def load_config_json(
    path: str | Path | None = None, *, require_exists: bool = False
) -> dict[str, Any]:
    cfg_path = resolve_config_path(path)
    if not cfg_path.exists():
        if require_exists:
            raise FileNotFoundError(f"Config file not found: {cfg_path}")
        return {}
    try:
        return json.loads(cfg_path.read_text())
    except json.JSONDecodeError as exc:
        raise ValueError(f"Invalid JSON in config file {cfg_path}: {exc}") from exc


CONFIG: dict[str, Any] = load_config_json()


def set_config(config: dict[str, Any]) -> None:
    """Replace the global CONFIG dict in-place.

    This allows code that imported CONFIG at module import time to see updates.
    """
    CONFIG.clear()
    CONFIG.update(config)


def load_config(
    path: str | Path | None = None, *, require_exists: bool = False
) -> None:
    """Load config from disk into the global CONFIG dict."""
    set_config(load_config_json(path, require_exists=require_exists))


class EngineSettings(BaseModel):
    min_slippage_percent: float = MIN_SLIPPAGE_PERCENT
    auto_max_slippage_percent: float = AUTO_MAX_SLIPPAGE_PERCENT
    manual_max_slippage_percent: float = MANUAL_MAX_SLIPPAGE_PERCENT
    auto_slippage_fallback: float = DEFAULT_SWAP_SLIPPAGE_AUTO_FALLBACK
    debounce_s: float = Field(default=DEFAULT_QUOTE_DEBOUNCE_S, ge=0)
    quoter_gas: int = QUOTER_CALL_GAS
    quoter_gas_fallback: int = QUOTER_CALL_GAS_FALLBACK


def _chain_section() -> dict[str, Any]:
    return CONFIG.get("chain", {}) or {}


def get_rpc_url() -> str | None:
    rpc = _chain_section().get("rpc_url")
    if rpc:
        return str(rpc).strip()
    return os.environ.get(_RPC_URL_ENV_KEY)


def get_quoter_address() -> str | None:
    addr = _chain_section().get("quoter_address")
    return str(addr).strip() if addr else None


def get_native_token_address() -> str:
    addr = _chain_section().get("native_token_address")
    return str(addr).strip() if addr else NATIVE_PLACEHOLDER_ADDRESS


def get_wrapped_native_address() -> str | None:
    addr = _chain_section().get("wrapped_native_address")
    return str(addr).strip() if addr else None


def get_engine_settings() -> EngineSettings:
    return EngineSettings.model_validate(CONFIG.get("engine", {}) or {})
