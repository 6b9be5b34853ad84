# pumptrade/core/instruction_builder.py
from typing import Optional

from borsh_construct import String
from solders.compute_budget import set_compute_unit_limit, set_compute_unit_price
from solders.instruction import Instruction, AccountMeta
from solders.pubkey import Pubkey
from solders.system_program import TransferParams, transfer

from .pubkeys import (
    PumpAddresses,
    SolanaProgramAddresses,
    find_associated_bonding_curve,
    find_bonding_curve_pda,
    find_metadata_pda,
    find_user_ata,
)

# --- Instruction Discriminators (from the program IDL) ---
CREATE_DISCRIMINATOR = bytes.fromhex("181ec828051c0777")
BUY_DISCRIMINATOR = bytes.fromhex("66063d1201daebea")
SELL_DISCRIMINATOR = bytes.fromhex("33e685a4017f83ad")

CLOSE_ACCOUNT_TAG = b'\x09'  # spl-token CloseAccount


def _u64(value: int) -> bytes:
    return value.to_bytes(8, 'little')


class InstructionBuilder:
    """Encodes pump.fun, token and system instructions. Holds no state."""

    @staticmethod
    def get_associated_token_address(owner: Pubkey, mint: Pubkey) -> Pubkey:
        return find_user_ata(owner, mint)

    @staticmethod
    def get_create_ata_instruction(
            payer: Pubkey,
            owner: Pubkey,
            mint: Pubkey,
            ata_pubkey: Optional[Pubkey] = None
    ) -> Instruction:
        """
        Generates the instruction to create an Associated Token Account.
        The caller is responsible for checking if the ATA already exists.
        """
        associated_token_address = ata_pubkey or find_user_ata(owner, mint)

        return Instruction(
            program_id=SolanaProgramAddresses.ASSOCIATED_TOKEN_ACCOUNT_PROGRAM_ID,
            accounts=[
                AccountMeta(pubkey=payer, is_signer=True, is_writable=True),
                AccountMeta(pubkey=associated_token_address, is_signer=False, is_writable=True),
                AccountMeta(pubkey=owner, is_signer=False, is_writable=False),
                AccountMeta(pubkey=mint, is_signer=False, is_writable=False),
                AccountMeta(pubkey=SolanaProgramAddresses.SYSTEM_PROGRAM_ID, is_signer=False, is_writable=False),
                AccountMeta(pubkey=SolanaProgramAddresses.TOKEN_PROGRAM_ID, is_signer=False, is_writable=False),
            ],
            data=b''
        )

    @staticmethod
    def set_compute_unit_limit(units: int) -> Instruction:
        return set_compute_unit_limit(units)

    @staticmethod
    def set_compute_unit_price(micro_lamports: int) -> Instruction:
        return set_compute_unit_price(micro_lamports)

    @staticmethod
    def transfer_sol(from_pubkey: Pubkey, to_pubkey: Pubkey, lamports: int) -> Instruction:
        return transfer(TransferParams(from_pubkey=from_pubkey, to_pubkey=to_pubkey, lamports=lamports))

    @staticmethod
    def build_create_instruction(
            user_wallet_pubkey: Pubkey,
            mint_pubkey: Pubkey,
            name: str,
            symbol: str,
            uri: str,
    ) -> Instruction:
        """Builds the pump.fun 'create' instruction. The mint keypair must co-sign."""
        instruction_data = (
                CREATE_DISCRIMINATOR +
                String.build(name) +
                String.build(symbol) +
                String.build(uri)
        )

        accounts = [
            AccountMeta(pubkey=mint_pubkey, is_signer=True, is_writable=True),  # 0. mint
            AccountMeta(pubkey=PumpAddresses.MINT_AUTHORITY, is_signer=False, is_writable=False),  # 1. mintAuthority
            AccountMeta(pubkey=find_bonding_curve_pda(mint_pubkey), is_signer=False, is_writable=True),
            # 2. bondingCurve
            AccountMeta(pubkey=find_associated_bonding_curve(mint_pubkey), is_signer=False, is_writable=True),
            # 3. associatedBondingCurve
            AccountMeta(pubkey=PumpAddresses.GLOBAL_STATE, is_signer=False, is_writable=False),  # 4. global
            AccountMeta(pubkey=SolanaProgramAddresses.MPL_TOKEN_METADATA_PROGRAM_ID, is_signer=False,
                        is_writable=False),  # 5. mplTokenMetadata
            AccountMeta(pubkey=find_metadata_pda(mint_pubkey), is_signer=False, is_writable=True),  # 6. metadata
            AccountMeta(pubkey=user_wallet_pubkey, is_signer=True, is_writable=True),  # 7. user
            AccountMeta(pubkey=SolanaProgramAddresses.SYSTEM_PROGRAM_ID, is_signer=False, is_writable=False),
            AccountMeta(pubkey=SolanaProgramAddresses.TOKEN_PROGRAM_ID, is_signer=False, is_writable=False),
            AccountMeta(pubkey=SolanaProgramAddresses.ASSOCIATED_TOKEN_ACCOUNT_PROGRAM_ID, is_signer=False,
                        is_writable=False),
            AccountMeta(pubkey=SolanaProgramAddresses.RENT_SYSVAR_PUBKEY, is_signer=False, is_writable=False),
            AccountMeta(pubkey=PumpAddresses.EVENT_AUTHORITY, is_signer=False, is_writable=False),
            AccountMeta(pubkey=PumpAddresses.PROGRAM_ID, is_signer=False, is_writable=False),
        ]

        return Instruction(
            program_id=PumpAddresses.PROGRAM_ID,
            accounts=accounts,
            data=instruction_data
        )

    @staticmethod
    def build_buy_instruction(
            user_wallet_pubkey: Pubkey,
            mint_pubkey: Pubkey,
            fee_recipient: Pubkey,
            token_amount: int,
            max_sol_cost: int
    ) -> Instruction:
        """Builds the pump.fun 'buy' instruction: exact token amount, capped SOL cost."""
        instruction_data = BUY_DISCRIMINATOR + _u64(token_amount) + _u64(max_sol_cost)

        accounts = [
            AccountMeta(pubkey=PumpAddresses.GLOBAL_STATE, is_signer=False, is_writable=False),  # 0. global
            AccountMeta(pubkey=fee_recipient, is_signer=False, is_writable=True),  # 1. feeRecipient
            AccountMeta(pubkey=mint_pubkey, is_signer=False, is_writable=False),  # 2. mint
            AccountMeta(pubkey=find_bonding_curve_pda(mint_pubkey), is_signer=False, is_writable=True),
            # 3. bondingCurve
            AccountMeta(pubkey=find_associated_bonding_curve(mint_pubkey), is_signer=False, is_writable=True),
            # 4. associatedBondingCurve
            AccountMeta(pubkey=find_user_ata(user_wallet_pubkey, mint_pubkey), is_signer=False, is_writable=True),
            # 5. associatedUser
            AccountMeta(pubkey=user_wallet_pubkey, is_signer=True, is_writable=True),  # 6. user
            AccountMeta(pubkey=SolanaProgramAddresses.SYSTEM_PROGRAM_ID, is_signer=False, is_writable=False),
            AccountMeta(pubkey=SolanaProgramAddresses.TOKEN_PROGRAM_ID, is_signer=False, is_writable=False),
            AccountMeta(pubkey=SolanaProgramAddresses.RENT_SYSVAR_PUBKEY, is_signer=False, is_writable=False),
            AccountMeta(pubkey=PumpAddresses.EVENT_AUTHORITY, is_signer=False, is_writable=False),
            AccountMeta(pubkey=PumpAddresses.PROGRAM_ID, is_signer=False, is_writable=False),
        ]

        return Instruction(
            program_id=PumpAddresses.PROGRAM_ID,
            accounts=accounts,
            data=instruction_data
        )

    @staticmethod
    def build_sell_instruction(
            user_wallet_pubkey: Pubkey,
            mint_pubkey: Pubkey,
            fee_recipient: Pubkey,
            token_amount: int,
            min_sol_output: int
    ) -> Instruction:
        """Builds the pump.fun 'sell' instruction."""
        instruction_data = SELL_DISCRIMINATOR + _u64(token_amount) + _u64(min_sol_output)

        accounts = [
            AccountMeta(pubkey=PumpAddresses.GLOBAL_STATE, is_signer=False, is_writable=False),  # 0. global
            AccountMeta(pubkey=fee_recipient, is_signer=False, is_writable=True),  # 1. feeRecipient
            AccountMeta(pubkey=mint_pubkey, is_signer=False, is_writable=False),  # 2. mint
            AccountMeta(pubkey=find_bonding_curve_pda(mint_pubkey), is_signer=False, is_writable=True),
            AccountMeta(pubkey=find_associated_bonding_curve(mint_pubkey), is_signer=False, is_writable=True),
            AccountMeta(pubkey=find_user_ata(user_wallet_pubkey, mint_pubkey), is_signer=False, is_writable=True),
            AccountMeta(pubkey=user_wallet_pubkey, is_signer=True, is_writable=True),  # 6. user
            AccountMeta(pubkey=SolanaProgramAddresses.SYSTEM_PROGRAM_ID, is_signer=False, is_writable=False),
            AccountMeta(pubkey=SolanaProgramAddresses.ASSOCIATED_TOKEN_ACCOUNT_PROGRAM_ID, is_signer=False,
                        is_writable=False),  # 8. associatedTokenProgram
            AccountMeta(pubkey=SolanaProgramAddresses.TOKEN_PROGRAM_ID, is_signer=False, is_writable=False),
            AccountMeta(pubkey=PumpAddresses.EVENT_AUTHORITY, is_signer=False, is_writable=False),
            AccountMeta(pubkey=PumpAddresses.PROGRAM_ID, is_signer=False, is_writable=False),
        ]

        return Instruction(
            program_id=PumpAddresses.PROGRAM_ID,
            accounts=accounts,
            data=instruction_data
        )

    @staticmethod
    def close_account_instruction(
            account_to_close: Pubkey,
            destination_wallet: Pubkey,
            owner: Pubkey
    ) -> Instruction:
        """Closes a token account and sends its rent to the destination."""
        return Instruction(
            program_id=SolanaProgramAddresses.TOKEN_PROGRAM_ID,
            accounts=[
                AccountMeta(pubkey=account_to_close, is_signer=False, is_writable=True),
                AccountMeta(pubkey=destination_wallet, is_signer=False, is_writable=True),
                AccountMeta(pubkey=owner, is_signer=True, is_writable=False),
            ],
            data=CLOSE_ACCOUNT_TAG
        )
