# pumptrade/jito/__init__.py

from .client import JitoClient, TipAccountState
from .rpc import JsonRpcTransport

__all__ = [
    "JitoClient",
    "TipAccountState",
    "JsonRpcTransport",
]
