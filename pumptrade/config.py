# pumptrade/config.py

import os
from dataclasses import dataclass
from typing import Any, Dict, Optional

from dotenv import load_dotenv

from pumptrade.core.constants import (
    DEFAULT_COMPUTE_UNIT_LIMIT,
    DEFAULT_COMPUTE_UNIT_PRICE,
    DEFAULT_JITO_TIP_LAMPORTS,
    DEFAULT_SLIPPAGE_BPS,
)
from pumptrade.jito.rpc import REQUEST_TIMEOUT
from pumptrade.utils.logger import get_logger

logger = get_logger(__name__)

DEFAULT_RPC_ENDPOINT = "https://api.mainnet-beta.solana.com"  # Public RPC, rate limited
DEFAULT_COMMITMENT = "processed"


@dataclass(frozen=True)
class TraderSettings:
    """
    Trader configuration.

    `compute_unit_limit` and `compute_unit_price` are the default priority fee
    for create and create-and-buy transactions only. Buys and sells carry
    compute-budget instructions only when a PriorityFee is passed to the call.
    """
    rpc_endpoint: str = DEFAULT_RPC_ENDPOINT
    commitment: str = DEFAULT_COMMITMENT
    private_key: Optional[str] = None
    jito_url: Optional[str] = None
    jito_auth_token: Optional[str] = None
    slippage_bps: int = DEFAULT_SLIPPAGE_BPS
    compute_unit_limit: int = DEFAULT_COMPUTE_UNIT_LIMIT
    compute_unit_price: int = DEFAULT_COMPUTE_UNIT_PRICE
    jito_tip_lamports: int = DEFAULT_JITO_TIP_LAMPORTS
    relay_timeout_seconds: float = REQUEST_TIMEOUT

    def __repr__(self) -> str:
        # Keep secrets out of logs and tracebacks
        return (f"TraderSettings(rpc_endpoint={self.rpc_endpoint!r}, commitment={self.commitment!r}, "
                f"jito_url={self.jito_url!r}, slippage_bps={self.slippage_bps}, "
                f"compute_unit_limit={self.compute_unit_limit}, compute_unit_price={self.compute_unit_price}, "
                f"jito_tip_lamports={self.jito_tip_lamports})")


# env var -> (settings field, default)
_OPTIONAL_NUMERIC = {
    "DEFAULT_SLIPPAGE_BPS": ("slippage_bps", DEFAULT_SLIPPAGE_BPS),
    "COMPUTE_UNIT_LIMIT": ("compute_unit_limit", DEFAULT_COMPUTE_UNIT_LIMIT),
    "COMPUTE_UNIT_PRICE": ("compute_unit_price", DEFAULT_COMPUTE_UNIT_PRICE),
    "JITO_TIP_LAMPORTS": ("jito_tip_lamports", DEFAULT_JITO_TIP_LAMPORTS),
    "RELAY_TIMEOUT_SECONDS": ("relay_timeout_seconds", REQUEST_TIMEOUT),
}


def load_settings(dotenv_path: Optional[str] = None, environ: Optional[Dict[str, str]] = None) -> TraderSettings:
    """
    Builds TraderSettings from the environment, after loading `.env`.

    Unset values take their defaults. Numeric values that fail to parse, or are
    negative, fall back to the default with a warning.

    COMPUTE_UNIT_LIMIT and COMPUTE_UNIT_PRICE apply to the create paths only;
    buy and sell add a compute budget only when the caller passes one.
    """
    if environ is None:
        load_dotenv(dotenv_path=dotenv_path)
        environ = os.environ

    values: Dict[str, Any] = {
        "rpc_endpoint": environ.get("SOLANA_NODE_RPC_ENDPOINT") or DEFAULT_RPC_ENDPOINT,
        "commitment": (environ.get("SOLANA_COMMITMENT") or DEFAULT_COMMITMENT).lower(),
        "private_key": environ.get("SOLANA_PRIVATE_KEY") or None,
        "jito_url": environ.get("JITO_BLOCK_ENGINE_URL") or None,
        "jito_auth_token": environ.get("JITO_AUTH_TOKEN") or None,
    }

    for var, (field_name, default) in _OPTIONAL_NUMERIC.items():
        raw = environ.get(var)
        if raw is None or raw == "":
            values[field_name] = default
            continue
        try:
            parsed = type(default)(raw)
        except ValueError:
            logger.warning(f"Config warning: invalid value for {var}, using default {default}")
            values[field_name] = default
            continue
        if parsed < 0:
            logger.warning(f"Config warning: {var} must not be negative, using default {default}")
            parsed = default
        values[field_name] = parsed

    settings = TraderSettings(**values)
    logger.info(f"Configuration loaded: {settings!r}")
    return settings
