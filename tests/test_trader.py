"""Tests for PumpTrader routing and lifecycle."""

import copy
from unittest.mock import AsyncMock, MagicMock

import pytest
from solders.keypair import Keypair
from solders.pubkey import Pubkey

from pumptrade.config import TraderSettings
from pumptrade.core.exceptions import InsufficientBalanceError, InvalidInputError, MissingRelayClientError
from pumptrade.core.wallet import Wallet
from pumptrade.jito.client import JitoClient
from pumptrade.trading.base import TokenMetadata
from pumptrade.trading.trader import PumpTrader

METADATA = TokenMetadata(name="Test Token", symbol="TEST", uri="https://ipfs.example/meta.json")


@pytest.fixture
def wallet(payer) -> Wallet:
    return Wallet.from_keypair(payer)


class TestDirectRouting:
    @pytest.mark.asyncio
    async def test_buy_goes_to_rpc(self, solana_client, wallet, jito_client, mint) -> None:
        trader = PumpTrader(solana_client, wallet, jito_client=jito_client)

        signature = await trader.buy(mint, 1_000_000)

        assert signature == "direct-signature"
        solana_client.send_transaction.assert_awaited_once()
        jito_client.send_transaction.assert_not_awaited()
        jito_client.get_tip_account.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_create_and_buy_confirms(self, solana_client, wallet) -> None:
        trader = PumpTrader(solana_client, wallet)

        signature = await trader.create_and_buy(Keypair(), METADATA, 1_000_000)

        assert signature == "confirmed-signature"
        solana_client.send_and_confirm_transaction.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_sell_by_percent(self, solana_client, wallet, mint) -> None:
        solana_client.account_exists = AsyncMock(return_value=True)
        solana_client.get_token_account_balance = AsyncMock(return_value=1_000)
        trader = PumpTrader(solana_client, wallet)

        assert await trader.sell_by_percent(mint, 25) == "direct-signature"


class TestRelayRouting:
    @pytest.mark.asyncio
    async def test_buy_with_jito(self, solana_client, wallet, jito_client, mint) -> None:
        trader = PumpTrader(solana_client, wallet, jito_client=jito_client)

        bundle_id = await trader.buy_with_jito(mint, 1_000_000)

        assert bundle_id == "bundle-id"
        jito_client.send_transaction.assert_awaited_once()
        solana_client.send_transaction.assert_not_awaited()

    @pytest.mark.asyncio
    @pytest.mark.parametrize("operation", [
        lambda t, mint: t.buy_with_jito(mint, 1_000_000),
        lambda t, mint: t.sell_with_jito(mint),
        lambda t, mint: t.sell_by_percent_with_jito(mint, 50),
        lambda t, mint: t.create_and_buy_with_jito(Keypair(), METADATA, [1_000_000]),
    ])
    async def test_missing_relay(self, solana_client, wallet, mint, operation) -> None:
        trader = PumpTrader(solana_client, wallet)

        with pytest.raises(MissingRelayClientError):
            await operation(trader, mint)

        solana_client.get_account_data.assert_not_awaited()
        solana_client.account_exists.assert_not_awaited()
        solana_client.get_latest_blockhash.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_create_and_buy_with_jito_bundles_all_payers(self, solana_client, wallet, jito_client) -> None:
        trader = PumpTrader(solana_client, wallet, jito_client=jito_client)
        payers = [wallet.keypair, Keypair(), Keypair()]

        bundle_id = await trader.create_and_buy_with_jito(Keypair(), METADATA, [1_000_000] * 3, payers=payers)

        assert bundle_id == "bundle-id"
        sent = jito_client.send_bundle.await_args.args[0]
        assert len(sent) == 3

    @pytest.mark.asyncio
    async def test_create_and_buy_with_jito_defaults_to_own_wallet(self, solana_client, wallet,
                                                                   jito_client) -> None:
        trader = PumpTrader(solana_client, wallet, jito_client=jito_client)

        await trader.create_and_buy_with_jito(Keypair(), METADATA, [1_000_000])

        sent = jito_client.send_bundle.await_args.args[0]
        assert len(sent) == 1
        assert sent[0].message.account_keys[0] == wallet.pubkey


class TestWallet:
    @pytest.mark.asyncio
    async def test_transfer_checks_balance(self, solana_client, wallet) -> None:
        solana_client.get_balance = AsyncMock(return_value=1_000)
        trader = PumpTrader(solana_client, wallet)

        with pytest.raises(InsufficientBalanceError) as exc_info:
            await trader.transfer_sol(Pubkey.new_unique(), 5_000)

        assert exc_info.value.required == 5_000
        solana_client.send_and_confirm_transaction.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_transfer(self, solana_client, wallet) -> None:
        trader = PumpTrader(solana_client, wallet)
        assert await trader.transfer_sol(Pubkey.new_unique(), 5_000) == "confirmed-signature"

    @pytest.mark.asyncio
    async def test_transfer_zero(self, solana_client, wallet) -> None:
        trader = PumpTrader(solana_client, wallet)
        with pytest.raises(InvalidInputError):
            await trader.transfer_sol(Pubkey.new_unique(), 0)
        solana_client.get_balance.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_token_balance_without_ata(self, solana_client, wallet, mint) -> None:
        trader = PumpTrader(solana_client, wallet)
        assert await trader.get_token_balance(mint) == 0
        solana_client.get_token_account_balance.assert_not_awaited()


class TestLifecycle:
    @pytest.mark.asyncio
    async def test_clone_starts_with_empty_caches(self, solana_client, wallet, jito_client, mint) -> None:
        solana_client.clone = MagicMock(return_value=MagicMock())
        jito_client.clone = MagicMock(return_value=MagicMock())
        trader = PumpTrader(solana_client, wallet, jito_client=jito_client, slippage_bps=250)
        await trader.buy(mint, 1_000_000)
        assert len(trader.global_cache) == 1
        assert len(trader.curve_cache) == 1

        clone = trader.clone()

        assert clone is not trader
        assert len(clone.global_cache) == 0
        assert len(clone.curve_cache) == 0
        assert clone.slippage_bps == 250
        assert clone.wallet is wallet
        solana_client.clone.assert_called_once()
        jito_client.clone.assert_called_once()

    def test_copy_is_clone(self, solana_client, wallet) -> None:
        solana_client.clone = MagicMock(return_value=MagicMock())
        trader = PumpTrader(solana_client, wallet)

        duplicate = copy.copy(trader)

        assert isinstance(duplicate, PumpTrader)
        assert duplicate.global_cache is not trader.global_cache

    @pytest.mark.asyncio
    async def test_context_manager_closes_clients(self, solana_client, wallet, jito_client) -> None:
        async with PumpTrader(solana_client, wallet, jito_client=jito_client):
            pass
        solana_client.close.assert_awaited_once()
        jito_client.close.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_from_settings(self, payer) -> None:
        settings = TraderSettings(
            rpc_endpoint="http://localhost:8899",
            commitment="confirmed",
            jito_url="https://relay.example",
            jito_auth_token="token",
            slippage_bps=300,
            compute_unit_limit=90_000,
            compute_unit_price=1_000,
            jito_tip_lamports=42_000,
        )

        trader = PumpTrader.from_settings(settings, wallet=Wallet.from_keypair(payer))

        assert isinstance(trader.jito_client, JitoClient)
        assert trader.slippage_bps == 300
        assert trader.priority_fee.limit == 90_000
        assert trader.priority_fee.price == 1_000
        assert trader.assembler.default_tip_lamports == 42_000
        await trader.close()

    @pytest.mark.asyncio
    async def test_clone_keeps_relay_timeout(self, payer) -> None:
        settings = TraderSettings(jito_url="https://relay.example", relay_timeout_seconds=42.0)
        trader = PumpTrader.from_settings(settings, wallet=Wallet.from_keypair(payer))

        clone = trader.clone()

        assert trader.jito_client._transport.timeout == 42.0
        assert clone.jito_client._transport.timeout == 42.0
        assert clone.jito_client.tip_accounts == []
        await trader.close()
        await clone.close()

    def test_from_settings_needs_key(self) -> None:
        with pytest.raises(ValueError):
            PumpTrader.from_settings(TraderSettings())
