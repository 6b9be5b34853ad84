"""Tests for derived addresses and instruction encoding."""

import pytest
from solders.keypair import Keypair
from solders.pubkey import Pubkey
from spl.token.instructions import get_associated_token_address

from pumptrade.core.exceptions import AddressFormatError
from pumptrade.core.instruction_builder import (
    BUY_DISCRIMINATOR,
    CREATE_DISCRIMINATOR,
    SELL_DISCRIMINATOR,
    InstructionBuilder,
)
from pumptrade.core.pubkeys import (
    PumpAddresses,
    find_associated_bonding_curve,
    find_bonding_curve_pda,
    parse_pubkey,
)
from pumptrade.core.wallet import Wallet
from pumptrade.trading.base import PriorityFee


class TestAddresses:
    def test_bonding_curve_pda(self) -> None:
        mint = Pubkey.new_unique()
        expected = Pubkey.find_program_address([b"bonding-curve", bytes(mint)], PumpAddresses.PROGRAM_ID)[0]
        assert find_bonding_curve_pda(mint) == expected

    def test_associated_bonding_curve_is_curve_ata(self) -> None:
        mint = Pubkey.new_unique()
        assert find_associated_bonding_curve(mint) == get_associated_token_address(find_bonding_curve_pda(mint), mint)

    def test_parse_pubkey(self) -> None:
        key = Pubkey.new_unique()
        assert parse_pubkey(str(key)) == key
        assert parse_pubkey(key) is key
        with pytest.raises(AddressFormatError):
            parse_pubkey("0OIl")


class TestInstructions:
    def test_create_payload(self) -> None:
        user, mint = Pubkey.new_unique(), Pubkey.new_unique()

        ix = InstructionBuilder.build_create_instruction(user, mint, "Name", "SYM", "https://u")

        data = bytes(ix.data)
        assert data[:8] == CREATE_DISCRIMINATOR
        assert data[8:12] == (4).to_bytes(4, "little")
        assert data[12:16] == b"Name"
        assert ix.program_id == PumpAddresses.PROGRAM_ID
        assert ix.accounts[0].pubkey == mint and ix.accounts[0].is_signer
        assert ix.accounts[7].pubkey == user and ix.accounts[7].is_signer

    @pytest.mark.parametrize("builder, discriminator", [
        (InstructionBuilder.build_buy_instruction, BUY_DISCRIMINATOR),
        (InstructionBuilder.build_sell_instruction, SELL_DISCRIMINATOR),
    ])
    def test_trade_payload(self, builder, discriminator) -> None:
        ix = builder(Pubkey.new_unique(), Pubkey.new_unique(), Pubkey.new_unique(), 1_234, 5_678)
        data = bytes(ix.data)
        assert data == discriminator + (1_234).to_bytes(8, "little") + (5_678).to_bytes(8, "little")
        assert ix.accounts[-2].pubkey == PumpAddresses.EVENT_AUTHORITY

    def test_priority_fee_order(self) -> None:
        limit_ix, price_ix = PriorityFee(limit=200_000, price=1_000).instructions()
        assert bytes(limit_ix.data)[0] == 2  # SetComputeUnitLimit
        assert bytes(price_ix.data)[0] == 3  # SetComputeUnitPrice

    def test_partial_priority_fee(self) -> None:
        assert len(PriorityFee(limit=None, price=5).instructions()) == 1
        assert PriorityFee(limit=None, price=None).instructions() == []


class TestWallet:
    def test_from_keypair(self) -> None:
        keypair = Keypair()
        assert Wallet.from_keypair(keypair).pubkey == keypair.pubkey()

    def test_invalid_key(self) -> None:
        with pytest.raises(ValueError, match="Invalid private key"):
            Wallet("not-a-key")
