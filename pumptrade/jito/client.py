# pumptrade/jito/client.py

import asyncio
import base64
import random
from enum import Enum
from typing import List, Optional, Sequence

from solders.pubkey import Pubkey

from ..core.client import SignedTransaction
from ..core.constants import JITO_BUNDLES_PATH, MAX_BUNDLE_TRANSACTIONS
from ..core.exceptions import InvalidInputError, NoTipAccountsAvailableError, RelayError
from ..core.pubkeys import parse_pubkey
from ..utils.logger import get_logger
from .rpc import PARSE_ERROR_CODE, REQUEST_TIMEOUT, JsonRpcTransport

logger = get_logger(__name__)


class TipAccountState(Enum):
    UNINITIALIZED = "UNINITIALIZED"
    POPULATED = "POPULATED"


class JitoClient:
    """
    Jito block-engine client: tip account rotation and bundle submission.

    Tip accounts are fetched on first demand and kept for the life of the
    client; there is no background refresh. Submission is a single call with
    no retry, retry policy belongs to the caller.
    """

    def __init__(
        self,
        base_url: str,
        auth_token: Optional[str] = None,
        rng: Optional[random.Random] = None,
        transport: Optional[JsonRpcTransport] = None,
        timeout: float = REQUEST_TIMEOUT,
        path: str = JITO_BUNDLES_PATH,
    ):
        self.base_url = base_url
        self.auth_token = auth_token
        self.timeout = timeout
        self.path = path
        self._rng = rng or random.Random()
        self._transport = transport or JsonRpcTransport(base_url, auth_token=auth_token, path=path, timeout=timeout)
        self._tip_accounts: List[str] = []
        self._state = TipAccountState.UNINITIALIZED
        self._refresh_lock = asyncio.Lock()

    @property
    def tip_account_state(self) -> TipAccountState:
        return self._state

    @property
    def tip_accounts(self) -> List[str]:
        return list(self._tip_accounts)

    def clone(self) -> "JitoClient":
        """
        Same relay, credentials, timeout and random source on a new connection.

        The tip set starts empty; the copy rediscovers tip accounts on first use.
        """
        return JitoClient(
            self.base_url,
            auth_token=self.auth_token,
            rng=self._rng,
            timeout=self.timeout,
            path=self.path,
        )

    async def close(self) -> None:
        await self._transport.close()

    async def __aenter__(self) -> "JitoClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def get_tip_accounts(self) -> List[str]:
        """Raw getTipAccounts call."""
        result = await self._transport.call("getTipAccounts")
        if not isinstance(result, list):
            return []
        return [str(account) for account in result]

    async def refresh_tip_accounts(self) -> List[str]:
        async with self._refresh_lock:
            accounts = await self.get_tip_accounts()
            self._tip_accounts = accounts
            self._state = TipAccountState.POPULATED
        logger.debug(f"Loaded {len(accounts)} Jito tip accounts")
        return list(accounts)

    def _choose(self) -> Optional[Pubkey]:
        if not self._tip_accounts:
            return None
        return parse_pubkey(self._rng.choice(self._tip_accounts))

    async def get_tip_account(self) -> Pubkey:
        """Uniformly random tip account, refreshing the set once if it is empty."""
        if self._state is TipAccountState.POPULATED:
            chosen = self._choose()
            if chosen is not None:
                return chosen

        await self.refresh_tip_accounts()
        chosen = self._choose()
        if chosen is None:
            raise NoTipAccountsAvailableError("jito: no tip accounts available")
        return chosen

    @staticmethod
    def encode_transaction(transaction: SignedTransaction) -> str:
        return base64.b64encode(bytes(transaction)).decode("ascii")

    async def send_bundle(self, transactions: Sequence[SignedTransaction]) -> str:
        """Submits the signed transactions, in order, as one bundle. Returns the bundle id."""
        if not transactions:
            raise InvalidInputError("Bundle must contain at least one transaction")
        if len(transactions) > MAX_BUNDLE_TRANSACTIONS:
            raise InvalidInputError(
                f"Bundle has {len(transactions)} transactions, relay accepts at most {MAX_BUNDLE_TRANSACTIONS}")
        encoded = [self.encode_transaction(tx) for tx in transactions]
        bundle_id = await self._transport.call("sendBundle", [encoded, {"encoding": "base64"}])
        if not isinstance(bundle_id, str) or not bundle_id:
            raise RelayError(PARSE_ERROR_CODE, f"Relay returned no bundle id: {bundle_id!r}")
        logger.info(f"Bundle submitted: {bundle_id} ({len(encoded)} txs)")
        return bundle_id

    async def send_transaction(self, transaction: SignedTransaction) -> str:
        return await self.send_bundle([transaction])
