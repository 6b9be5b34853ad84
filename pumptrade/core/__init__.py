# pumptrade/core/__init__.py

from .account_cache import AccountStateCache
from .client import SolanaClient
from .curve import BondingCurveState, GlobalAccountState
from .instruction_builder import InstructionBuilder
from .pubkeys import PumpAddresses, SolanaProgramAddresses
from .wallet import Wallet

__all__ = [
    "AccountStateCache",
    "SolanaClient",
    "BondingCurveState",
    "GlobalAccountState",
    "InstructionBuilder",
    "PumpAddresses",
    "SolanaProgramAddresses",
    "Wallet",
]
