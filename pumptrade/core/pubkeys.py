# pumptrade/core/pubkeys.py

from solders.pubkey import Pubkey
from solders.system_program import ID as SYSTEM_PROGRAM_ID_SOLDERS  # Renamed to avoid conflict
from spl.token.constants import (
    ASSOCIATED_TOKEN_PROGRAM_ID as ASSOCIATED_TOKEN_PROGRAM_ID_SPL,
    TOKEN_PROGRAM_ID as TOKEN_PROGRAM_ID_SPL,
)
from spl.token.instructions import get_associated_token_address

from .exceptions import AddressFormatError

# PDA seeds used by the pump.fun program
GLOBAL_SEED = b"global"
MINT_AUTHORITY_SEED = b"mint-authority"
BONDING_CURVE_SEED = b"bonding-curve"
METADATA_SEED = b"metadata"
EVENT_AUTHORITY_SEED = b"__event_authority"


class SolanaProgramAddresses:
    SYSTEM_PROGRAM_ID: Pubkey = SYSTEM_PROGRAM_ID_SOLDERS
    TOKEN_PROGRAM_ID: Pubkey = TOKEN_PROGRAM_ID_SPL
    ASSOCIATED_TOKEN_ACCOUNT_PROGRAM_ID: Pubkey = ASSOCIATED_TOKEN_PROGRAM_ID_SPL
    RENT_SYSVAR_PUBKEY: Pubkey = Pubkey.from_string(
        "SysvarRent111111111111111111111111111111111"
    )
    COMPUTE_BUDGET_PROGRAM_ID: Pubkey = Pubkey.from_string(
        "ComputeBudget111111111111111111111111111111"
    )
    MPL_TOKEN_METADATA_PROGRAM_ID: Pubkey = Pubkey.from_string(
        "metaqbxxUerdq28cj1RbAWkYQm3ybzjb6a8bt518x1s"
    )


class PumpAddresses:
    # (1) The on-chain pump.fun program ID
    PROGRAM_ID = Pubkey.from_string("6EF8rrecthR5Dkzon8Nwu78hRvfCKubJ14M5uBEwF6P")

    # (2) Global state PDA (seed = b"global")
    GLOBAL_STATE: Pubkey = Pubkey.find_program_address([GLOBAL_SEED], PROGRAM_ID)[0]

    # (3) Mint authority PDA, signs for every mint the program creates
    MINT_AUTHORITY: Pubkey = Pubkey.find_program_address([MINT_AUTHORITY_SEED], PROGRAM_ID)[0]

    # (4) Anchor event authority PDA
    EVENT_AUTHORITY: Pubkey = Pubkey.find_program_address([EVENT_AUTHORITY_SEED], PROGRAM_ID)[0]


def find_bonding_curve_pda(mint: Pubkey) -> Pubkey:
    """Bonding curve state account for a mint."""
    return Pubkey.find_program_address([BONDING_CURVE_SEED, bytes(mint)], PumpAddresses.PROGRAM_ID)[0]


def find_associated_bonding_curve(mint: Pubkey) -> Pubkey:
    """Token vault of the bonding curve: the curve PDA's associated token account."""
    return get_associated_token_address(find_bonding_curve_pda(mint), mint)


def find_metadata_pda(mint: Pubkey) -> Pubkey:
    metadata_program = SolanaProgramAddresses.MPL_TOKEN_METADATA_PROGRAM_ID
    return Pubkey.find_program_address(
        [METADATA_SEED, bytes(metadata_program), bytes(mint)],
        metadata_program,
    )[0]


def find_user_ata(owner: Pubkey, mint: Pubkey) -> Pubkey:
    return get_associated_token_address(owner, mint)


def parse_pubkey(value) -> Pubkey:
    """Accepts a Pubkey or a base58 string; raises AddressFormatError otherwise."""
    if isinstance(value, Pubkey):
        return value
    try:
        return Pubkey.from_string(str(value))
    except ValueError as e:
        raise AddressFormatError(f"Invalid pubkey format: {value!r}") from e
