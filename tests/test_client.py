"""Tests for the Solana RPC wrapper."""

from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest
from solana.rpc.commitment import Confirmed, Finalized, Processed
from solders.hash import Hash
from solders.pubkey import Pubkey
from solders.signature import Signature

from pumptrade.core.client import SolanaClient, to_commitment
from pumptrade.core.exceptions import TransportError


class FakeSignedTx:
    def __init__(self, payload: bytes):
        self.payload = payload

    def __bytes__(self) -> bytes:
        return self.payload


def make_client() -> SolanaClient:
    client = SolanaClient("http://localhost:8899")
    client.async_client = AsyncMock()
    return client


def rpc_response(value) -> MagicMock:
    resp = MagicMock()
    resp.value = value
    return resp


class TestCommitment:
    def test_names(self) -> None:
        assert to_commitment("finalized") == Finalized
        assert to_commitment("CONFIRMED") == Confirmed
        assert to_commitment(None) == Processed

    def test_unknown_name_warns(self, caplog) -> None:
        assert to_commitment("finalised") == Confirmed
        assert "unknown commitment 'finalised'" in caplog.text


class TestSolanaClient:
    @pytest.mark.asyncio
    async def test_missing_account(self) -> None:
        client = make_client()
        client.async_client.get_account_info = AsyncMock(return_value=rpc_response(None))

        assert await client.get_account_data(Pubkey.new_unique()) is None

    @pytest.mark.asyncio
    async def test_account_bytes(self) -> None:
        client = make_client()
        account = MagicMock()
        account.data = b"\x01\x02\x03"
        client.async_client.get_account_info = AsyncMock(return_value=rpc_response(account))

        assert await client.get_account_data(Pubkey.new_unique()) == b"\x01\x02\x03"
        assert await client.account_exists(Pubkey.new_unique()) is True

    @pytest.mark.asyncio
    async def test_network_error_is_wrapped(self) -> None:
        client = make_client()
        client.async_client.get_account_info = AsyncMock(side_effect=httpx.ConnectError("refused"))

        with pytest.raises(TransportError, match="refused"):
            await client.get_account_data(Pubkey.new_unique())

    @pytest.mark.asyncio
    async def test_latest_blockhash(self) -> None:
        client = make_client()
        blockhash = Hash.new_unique()
        value = MagicMock()
        value.blockhash = blockhash
        client.async_client.get_latest_blockhash = AsyncMock(return_value=rpc_response(value))

        assert await client.get_latest_blockhash() == blockhash

    @pytest.mark.asyncio
    async def test_token_balance_parsed_from_string(self) -> None:
        client = make_client()
        value = MagicMock()
        value.amount = "123456789"
        client.async_client.get_token_account_balance = AsyncMock(return_value=rpc_response(value))

        assert await client.get_token_account_balance(Pubkey.new_unique()) == 123_456_789

    @pytest.mark.asyncio
    async def test_send_transaction(self) -> None:
        client = make_client()
        signature = Signature.default()
        client.async_client.send_raw_transaction = AsyncMock(return_value=rpc_response(signature))
        tx = FakeSignedTx(b"signed")

        assert await client.send_transaction(tx) == str(signature)
        sent = client.async_client.send_raw_transaction.await_args
        assert sent.args[0] == b"signed"
        assert sent.kwargs["opts"] is client.tx_opts

    def test_clone_keeps_settings(self) -> None:
        client = SolanaClient("http://localhost:8899", commitment="finalized", skip_preflight=True)

        clone = client.clone()

        assert clone is not client
        assert clone.async_client is not client.async_client
        assert clone.rpc_endpoint == client.rpc_endpoint
        assert clone.commitment == Finalized
        assert clone.skip_preflight is True
