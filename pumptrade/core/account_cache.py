# pumptrade/core/account_cache.py
"""
Read-through cache for decoded pump.fun account state.

Entries are never refreshed or evicted. The global account is effectively
immutable so that is harmless there, but a cached bonding curve is a snapshot
taken at first use: every later trade on-chain moves the real reserves while
the cached copy stays put. Quotes built from it drift the longer the owning
client lives. Slippage bounds absorb the drift; callers who need live reserves
should build a new client (which starts with an empty cache).
"""

import asyncio
from contextlib import asynccontextmanager
from typing import Awaitable, Callable, Dict, Generic, Optional, TypeVar

from solders.pubkey import Pubkey

from .exceptions import AccountNotFoundError, DeserializationError
from ..utils.logger import get_logger

logger = get_logger(__name__)

T = TypeVar("T")

AccountFetcher = Callable[[Pubkey], Awaitable[Optional[bytes]]]
AccountDecoder = Callable[[bytes], T]


class AsyncReadWriteLock:
    """Many concurrent readers or one writer. Waiting writers block new readers."""

    def __init__(self):
        self._cond = asyncio.Condition()
        self._readers = 0
        self._writer = False
        self._writers_waiting = 0

    @asynccontextmanager
    async def read(self):
        async with self._cond:
            await self._cond.wait_for(lambda: not self._writer and self._writers_waiting == 0)
            self._readers += 1
        try:
            yield
        finally:
            async with self._cond:
                self._readers -= 1
                if self._readers == 0:
                    self._cond.notify_all()

    @asynccontextmanager
    async def write(self):
        async with self._cond:
            self._writers_waiting += 1
            try:
                await self._cond.wait_for(lambda: not self._writer and self._readers == 0)
            finally:
                self._writers_waiting -= 1
            self._writer = True
        try:
            yield
        finally:
            async with self._cond:
                self._writer = False
                self._cond.notify_all()


class AccountStateCache(Generic[T]):
    """Maps an account address to its decoded snapshot, populated on first miss."""

    def __init__(self, fetcher: AccountFetcher, decoder: AccountDecoder, name: str = "accounts"):
        self._fetcher = fetcher
        self._decoder = decoder
        self._name = name
        self._entries: Dict[Pubkey, T] = {}
        self._lock = AsyncReadWriteLock()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, address: Pubkey) -> bool:
        return address in self._entries

    async def get(self, address: Pubkey) -> T:
        async with self._lock.read():
            cached = self._entries.get(address)
        if cached is not None:
            return cached

        logger.debug(f"{self._name} cache miss for {address}, fetching")
        raw_data = await self._fetcher(address)
        if raw_data is None:
            raise AccountNotFoundError(address)
        try:
            value = self._decoder(raw_data)
        except DeserializationError:
            raise
        except (ValueError, TypeError) as e:
            raise DeserializationError(f"Failed to decode {address}: {e}") from e

        async with self._lock.write():
            # A concurrent miss may have populated the slot while we were fetching
            existing = self._entries.get(address)
            if existing is not None:
                return existing
            self._entries[address] = value
        return value
