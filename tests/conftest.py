"""Shared test fixtures."""

from typing import Dict, List, Optional, Tuple
from unittest.mock import AsyncMock, MagicMock

import pytest
from solders.hash import Hash
from solders.keypair import Keypair
from solders.pubkey import Pubkey

from pumptrade.core.curve import (
    BondingCurveState,
    GlobalAccountState,
    encode_bonding_curve_account,
    encode_global_account,
)
from pumptrade.core.pubkeys import PumpAddresses, find_bonding_curve_pda

SCENARIO_CURVE = BondingCurveState(
    virtual_token_reserves=1_000_000_000_000,
    virtual_sol_reserves=30_000_000_000,
    real_token_reserves=800_000_000_000,
    real_sol_reserves=0,
    token_total_supply=1_000_000_000_000_000,
    complete=False,
)


@pytest.fixture
def curve() -> BondingCurveState:
    return SCENARIO_CURVE


@pytest.fixture
def fee_recipient() -> Pubkey:
    return Pubkey.new_unique()


@pytest.fixture
def global_state(fee_recipient: Pubkey) -> GlobalAccountState:
    return GlobalAccountState(
        initialized=True,
        authority=Pubkey.new_unique(),
        fee_recipient=fee_recipient,
        initial_virtual_token_reserves=1_073_000_000_000_000,
        initial_virtual_sol_reserves=30_000_000_000,
        initial_real_token_reserves=793_100_000_000_000,
        token_total_supply=1_000_000_000_000_000,
        fee_basis_points=100,
    )


@pytest.fixture
def mint() -> Pubkey:
    return Pubkey.new_unique()


@pytest.fixture
def payer() -> Keypair:
    return Keypair()


@pytest.fixture
def chain_accounts(global_state: GlobalAccountState, curve: BondingCurveState, mint: Pubkey) -> Dict[Pubkey, bytes]:
    """Raw on-chain account bytes keyed by address."""
    return {
        PumpAddresses.GLOBAL_STATE: encode_global_account(global_state),
        find_bonding_curve_pda(mint): encode_bonding_curve_account(curve),
    }


@pytest.fixture
def solana_client(chain_accounts: Dict[Pubkey, bytes]) -> MagicMock:
    """SolanaClient stand-in backed by `chain_accounts`."""
    client = MagicMock()

    async def get_account_data(pubkey: Pubkey) -> Optional[bytes]:
        return chain_accounts.get(pubkey)

    client.get_account_data = AsyncMock(side_effect=get_account_data)
    client.account_exists = AsyncMock(return_value=False)
    client.get_latest_blockhash = AsyncMock(return_value=Hash.default())
    client.get_balance = AsyncMock(return_value=10_000_000_000)
    client.get_token_account_balance = AsyncMock(return_value=0)
    client.send_transaction = AsyncMock(return_value="direct-signature")
    client.send_and_confirm_transaction = AsyncMock(return_value="confirmed-signature")
    client.close = AsyncMock()
    return client


@pytest.fixture
def tip_account() -> Pubkey:
    return Pubkey.new_unique()


@pytest.fixture
def jito_client(tip_account: Pubkey) -> MagicMock:
    jito = MagicMock()
    jito.get_tip_account = AsyncMock(return_value=tip_account)
    jito.send_transaction = AsyncMock(return_value="bundle-id")
    jito.send_bundle = AsyncMock(return_value="bundle-id")
    jito.close = AsyncMock()
    return jito


def decode_instructions(tx) -> List[Tuple[Pubkey, bytes, List[Pubkey]]]:
    """(program id, data, account keys) for every instruction of a signed transaction."""
    keys = tx.message.account_keys
    return [
        (keys[ix.program_id_index], bytes(ix.data), [keys[i] for i in bytes(ix.accounts)])
        for ix in tx.message.instructions
    ]


@pytest.fixture
def instructions_of():
    return decode_instructions
