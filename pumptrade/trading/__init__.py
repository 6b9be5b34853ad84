# pumptrade/trading/__init__.py

from .assembler import TransactionAssembler
from .base import PriorityFee, TokenMetadata, TradeKind
from .trader import PumpTrader

__all__ = [
    "TransactionAssembler",
    "PriorityFee",
    "TokenMetadata",
    "TradeKind",
    "PumpTrader",
]
