# pumptrade/core/client.py

from typing import Optional, Union

import httpx
from solders.hash import Hash
from solders.pubkey import Pubkey
from solders.signature import Signature
from solders.transaction import Transaction, VersionedTransaction

from solana.exceptions import SolanaRpcException
from solana.rpc.async_api import AsyncClient
from solana.rpc.commitment import Commitment, Confirmed, Finalized, Processed
from solana.rpc.core import RPCException, TransactionExpiredBlockheightExceededError, UnconfirmedTxError
from solana.rpc.types import TxOpts

from .exceptions import TransportError
from ..utils.logger import get_logger

logger = get_logger(__name__)

DEFAULT_TIMEOUT_SECONDS = 60

SignedTransaction = Union[Transaction, VersionedTransaction]

_COMMITMENTS = {
    "processed": Processed,
    "confirmed": Confirmed,
    "finalized": Finalized,
}


def to_commitment(value: Union[str, Commitment, None]) -> Commitment:
    if value is None:
        return Processed
    if isinstance(value, str):
        commitment = _COMMITMENTS.get(value.lower())
        if commitment is None:
            logger.warning(f"Config warning: unknown commitment {value!r}, using {Confirmed}")
            return Confirmed
        return commitment
    return value


_RPC_ERRORS = (SolanaRpcException, RPCException, httpx.HTTPError, OSError)


class SolanaClient:
    """
    Thin async wrapper over solana-py's AsyncClient.

    Every method is a single RPC round trip. Failures are raised as
    TransportError; there are no retries here.
    """

    def __init__(
        self,
        rpc_endpoint: str,
        commitment: Union[str, Commitment, None] = Processed,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        skip_preflight: bool = False,
    ) -> None:
        self.rpc_endpoint = rpc_endpoint
        self.commitment = to_commitment(commitment)
        self.timeout_seconds = timeout_seconds
        self.skip_preflight = skip_preflight
        self.async_client = AsyncClient(
            rpc_endpoint, commitment=self.commitment, timeout=timeout_seconds
        )
        self.tx_opts = TxOpts(
            skip_preflight=self.skip_preflight, preflight_commitment=self.commitment
        )
        logger.info(f"SolanaClient initialized: {rpc_endpoint} @ {self.commitment}")

    def clone(self) -> "SolanaClient":
        """New connection with the same endpoint and commitment."""
        return SolanaClient(
            self.rpc_endpoint,
            commitment=self.commitment,
            timeout_seconds=self.timeout_seconds,
            skip_preflight=self.skip_preflight,
        )

    async def __aenter__(self) -> "SolanaClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def close(self) -> None:
        await self.async_client.close()
        logger.info("SolanaClient connection closed.")

    async def get_account_data(self, pubkey: Pubkey) -> Optional[bytes]:
        """Raw account bytes, or None if the account does not exist."""
        try:
            resp = await self.async_client.get_account_info(pubkey, commitment=self.commitment)
        except _RPC_ERRORS as e:
            raise TransportError(f"get_account_info {pubkey} failed: {e}") from e
        if resp.value is None:
            logger.debug(f"Account {pubkey} not found")
            return None
        return bytes(resp.value.data)

    async def account_exists(self, pubkey: Pubkey) -> bool:
        return await self.get_account_data(pubkey) is not None

    async def get_latest_blockhash(self) -> Hash:
        try:
            resp = await self.async_client.get_latest_blockhash(self.commitment)
        except _RPC_ERRORS as e:
            raise TransportError(f"get_latest_blockhash failed: {e}") from e
        return resp.value.blockhash

    async def get_balance(self, pubkey: Pubkey) -> int:
        """SOL balance in lamports."""
        try:
            resp = await self.async_client.get_balance(pubkey, self.commitment)
        except _RPC_ERRORS as e:
            raise TransportError(f"get_balance {pubkey} failed: {e}") from e
        return resp.value

    async def get_token_account_balance(self, token_account: Pubkey) -> int:
        """Raw token amount held by a token account."""
        try:
            resp = await self.async_client.get_token_account_balance(token_account, self.commitment)
        except _RPC_ERRORS as e:
            raise TransportError(f"get_token_account_balance {token_account} failed: {e}") from e
        # The RPC reports the amount as a decimal string
        try:
            return int(resp.value.amount)
        except (TypeError, ValueError) as e:
            raise TransportError(f"Unparseable token balance for {token_account}: {resp.value.amount!r}") from e

    async def send_transaction(self, transaction: SignedTransaction) -> str:
        try:
            resp = await self.async_client.send_raw_transaction(bytes(transaction), opts=self.tx_opts)
        except _RPC_ERRORS as e:
            raise TransportError(f"send_transaction failed: {e}") from e
        signature = str(resp.value)
        logger.info(f"Tx sent: {signature}")
        return signature

    async def send_and_confirm_transaction(self, transaction: SignedTransaction) -> str:
        signature = await self.send_transaction(transaction)
        try:
            await self.async_client.confirm_transaction(
                Signature.from_string(signature), self.commitment
            )
        except _RPC_ERRORS + (UnconfirmedTxError, TransactionExpiredBlockheightExceededError) as e:
            raise TransportError(f"confirm_transaction {signature} failed: {e}") from e
        logger.info(f"Tx confirmed: {signature}")
        return signature
