# pumptrade/__init__.py

from pumptrade.config import TraderSettings, load_settings
from pumptrade.jito import JitoClient
from pumptrade.trading import PriorityFee, PumpTrader, TokenMetadata, TradeKind

__version__ = "0.1.0"

__all__ = [
    "TraderSettings",
    "load_settings",
    "JitoClient",
    "PriorityFee",
    "PumpTrader",
    "TokenMetadata",
    "TradeKind",
]
